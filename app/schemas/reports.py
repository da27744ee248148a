"""
app/schemas/reports.py

Request and response schemas for report endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateReportRequest(_CamelModel):
    """
    Body of ``POST /api/generate-report``.

    ``data`` is loosely typed so an empty or malformed payload reaches the
    service and is answered with the standard error body.
    """

    data: Any = None
    report_type: str = "detailed"
    file_name: str | None = None


class GenerateReportResponse(_CamelModel):
    success: bool = True
    report_id: str
    report_type: str
    analysis: dict[str, Any]
    sla_analysis: dict[str, Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    download_url: str
    warnings: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime
