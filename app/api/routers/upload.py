"""
app/api/routers/upload.py

CSV upload and preview HTTP endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, UploadFile, status

from app.api.dependencies import get_csv_upload
from app.api.errors import api_error
from app.schemas.upload import UploadResponse
from app.services.csv_upload_service import (
    CSVParseError,
    CSVUploadService,
    UploadTooLargeError,
    get_csv_upload_service,
)

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/upload", response_model=UploadResponse)
def upload_csv(
    file: UploadFile = Depends(get_csv_upload),
    upload_service: CSVUploadService = Depends(get_csv_upload_service),
) -> UploadResponse:
    """
    Parse, clean and profile one CSV file and return a preview.
    """

    try:
        result = upload_service.process_upload(
            stream=file.file,
            file_name=file.filename or "upload.csv",
        )
    except UploadTooLargeError as exc:
        raise api_error(
            str(exc),
            "FILE_TOO_LARGE",
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        ) from exc
    except CSVParseError as exc:
        raise api_error(str(exc), "UPLOAD_ERROR", status.HTTP_400_BAD_REQUEST) from exc
    finally:
        file.file.close()

    return UploadResponse(
        success=result.success,
        file_name=result.file_name,
        data_structure=result.data_structure,
        data_quality=result.data_quality,
        preview=result.preview,
        full_data=result.data,
        total_records=result.total_records,
        warnings=result.warnings,
        errors=result.errors,
    )
