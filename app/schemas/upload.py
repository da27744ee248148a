"""
app/schemas/upload.py

Response schemas for the CSV upload endpoint.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UploadResponse(BaseModel):
    """
    API response model for one processed CSV upload.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    file_name: str
    data_structure: dict[str, Any] | None = None
    data_quality: dict[str, Any] = Field(default_factory=dict)
    preview: list[dict[str, Any]] = Field(default_factory=list)
    full_data: list[dict[str, Any]] = Field(default_factory=list)
    total_records: int = Field(..., ge=0)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
