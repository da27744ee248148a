"""
app/services/csv_upload_service.py

Service layer for the upload-and-preview workflow.

The upload is read into memory (bounded by the configured size limit),
parsed with ``csv.DictReader`` and passed through the cleaner and the
structure inspector. Nothing is persisted.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, BinaryIO

from analysis.cleaner import clean_rows
from analysis.inspector import inspect_rows
from app.config import get_upload_settings
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

_READ_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CSVParseError(ValueError):
    """
    Raised when the upload cannot be decoded or parsed as CSV.
    """


class UploadTooLargeError(ValueError):
    """
    Raised when the upload exceeds the configured size limit.
    """

    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")
        self.max_bytes = max_bytes


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UploadResult:
    """
    Cleaned rows plus the descriptors shown in the upload preview.
    """

    file_name: str
    data: list[dict[str, Any]]
    data_structure: dict[str, Any] | None
    data_quality: dict[str, Any]
    preview: list[dict[str, Any]]
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def total_records(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def read_limited(stream: BinaryIO, max_bytes: int) -> bytes:
    """
    Read at most ``max_bytes`` from ``stream``; raise when more is available.
    """

    buffer = bytearray()
    while True:
        chunk = stream.read(_READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise UploadTooLargeError(max_bytes)
    return bytes(buffer)


def parse_csv(content: bytes) -> list[dict[str, str]]:
    """
    Decode ``content`` as UTF-8 CSV and return one dict per data row.

    The first line is the header. Wholly blank lines are skipped by the
    reader; cells beyond the header width are dropped.
    """

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CSVParseError("CSV file must be UTF-8 encoded.") from exc

    reader = csv.DictReader(io.StringIO(text, newline=""))
    try:
        if not reader.fieldnames:
            raise CSVParseError("CSV file is empty or missing a header row.")
        rows = [
            {key: value for key, value in row.items() if key is not None}
            for row in reader
        ]
    except csv.Error as exc:
        raise CSVParseError(f"Unable to parse CSV file: {exc}") from exc

    return rows


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVUploadService:
    """
    Coordinates reading, parsing, cleaning and inspecting one upload.
    """

    def __init__(self, *, max_bytes: int, preview_rows: int) -> None:
        self._max_bytes = max(1, max_bytes)
        self._preview_rows = max(0, preview_rows)

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def process_upload(self, *, stream: BinaryIO, file_name: str) -> UploadResult:
        """
        Parse one CSV upload and build its preview.

        Raises:
            UploadTooLargeError: The upload is bigger than the size limit.
            CSVParseError: The bytes are not a readable CSV with a header.
        """

        content = read_limited(stream, self._max_bytes)
        raw_rows = parse_csv(content)

        cleaning = clean_rows(raw_rows)
        structure = inspect_rows(cleaning.data)
        structure_dict = structure.to_dict() if structure is not None else None

        data_quality = {
            "originalCount": cleaning.original_count,
            "cleanedCount": cleaning.cleaned_count,
            "errors": list(cleaning.errors),
            "warnings": list(cleaning.warnings),
        }
        if structure_dict is not None:
            data_quality.update(structure_dict["dataQuality"])

        log_event(
            logger,
            logging.INFO,
            "csv_upload_processed",
            file_name=file_name,
            bytes=len(content),
            rows_read=cleaning.original_count,
            rows_kept=cleaning.cleaned_count,
            columns=len(cleaning.columns),
            warnings=len(cleaning.warnings),
            errors=len(cleaning.errors),
        )

        return UploadResult(
            file_name=file_name,
            data=cleaning.data,
            data_structure=structure_dict,
            data_quality=data_quality,
            preview=cleaning.data[: self._preview_rows],
            warnings=list(cleaning.warnings),
            errors=list(cleaning.errors),
        )


@lru_cache(maxsize=1)
def get_csv_upload_service() -> CSVUploadService:
    """
    Return a cached upload service configured from environment settings.
    """

    settings = get_upload_settings()
    return CSVUploadService(
        max_bytes=settings.max_bytes,
        preview_rows=settings.preview_rows,
    )
