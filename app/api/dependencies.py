"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, UploadFile, status

from app.api.errors import api_error

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_csv_upload(csv_file: UploadFile | None = File(default=None, alias="csvFile")) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    if csv_file is None:
        raise api_error("No file uploaded.", "NO_FILE", status.HTTP_400_BAD_REQUEST)

    filename = (csv_file.filename or "").strip().lower()
    content_type = (csv_file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise api_error(
            "Only CSV files are allowed.",
            "INVALID_FILE_TYPE",
            status.HTTP_400_BAD_REQUEST,
        )

    return csv_file
