"""
app/services package marker.
"""

from app.services.csv_upload_service import (
    CSVParseError,
    CSVUploadService,
    UploadTooLargeError,
    get_csv_upload_service,
)
from app.services.report_service import (
    GeneratedReport,
    NoReportDataError,
    ReportService,
    get_report_service,
)
from app.services.report_storage import (
    InvalidReportIdError,
    ReportNotFoundError,
    ReportStorage,
    get_report_storage,
)

__all__ = [
    "CSVParseError",
    "CSVUploadService",
    "UploadTooLargeError",
    "get_csv_upload_service",
    "GeneratedReport",
    "NoReportDataError",
    "ReportService",
    "get_report_service",
    "InvalidReportIdError",
    "ReportNotFoundError",
    "ReportStorage",
    "get_report_storage",
]
