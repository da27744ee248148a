"""
app/schemas package marker.
"""

from app.schemas.reports import GenerateReportRequest, GenerateReportResponse, HealthResponse
from app.schemas.upload import UploadResponse

__all__ = [
    "GenerateReportRequest",
    "GenerateReportResponse",
    "HealthResponse",
    "UploadResponse",
]
