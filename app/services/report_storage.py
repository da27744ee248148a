"""
app/services/report_storage.py

Filesystem storage for rendered HTML reports.

Reports are written as ``<report_id>.html`` under one directory and are
removed by the periodic cleanup job once they exceed the retention window.
"""

from __future__ import annotations

import logging
import time
import uuid
from functools import lru_cache
from pathlib import Path

from app.config import get_report_settings
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

_REPORT_SUFFIX = ".html"


class ReportNotFoundError(LookupError):
    """
    Raised when no stored report matches the requested id.
    """


class InvalidReportIdError(ValueError):
    """
    Raised when a report id is not a UUID string.
    """


def validate_report_id(report_id: str) -> str:
    """
    Return the canonical form of ``report_id`` or raise ``InvalidReportIdError``.
    """

    try:
        return str(uuid.UUID(str(report_id)))
    except (TypeError, ValueError) as exc:
        raise InvalidReportIdError(f"Invalid report id '{report_id}'.") from exc


class ReportStorage:
    """
    Save, load and expire rendered reports in one directory.
    """

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def save(self, report_id: str, html: str) -> Path:
        path = self._path_for(report_id)
        self._directory.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        logger.debug("Saved report path=%s bytes=%d", path, len(html))
        return path

    def load(self, report_id: str) -> str:
        path = self._path_for(report_id)
        if not path.is_file():
            raise ReportNotFoundError(f"Report '{report_id}' not found.")
        return path.read_text(encoding="utf-8")

    def exists(self, report_id: str) -> bool:
        return self._path_for(report_id).is_file()

    def cleanup(self, max_age_hours: float, *, now: float | None = None) -> int:
        """
        Delete reports older than ``max_age_hours`` and return how many went.

        Files that disappear or cannot be removed mid-sweep are logged and
        skipped so one bad file does not stop the sweep.
        """

        if not self._directory.is_dir():
            return 0

        cutoff = (now if now is not None else time.time()) - max_age_hours * 3600
        removed = 0
        for path in sorted(self._directory.glob(f"*{_REPORT_SUFFIX}")):
            try:
                if path.stat().st_mtime >= cutoff:
                    continue
                path.unlink()
            except OSError as exc:
                logger.warning("Unable to remove report path=%s: %s", path, exc)
                continue
            removed += 1
            logger.info("Cleaned up old report: %s", path.name)

        log_event(
            logger,
            logging.INFO,
            "report_cleanup_completed",
            directory=str(self._directory),
            max_age_hours=max_age_hours,
            removed=removed,
        )
        return removed

    def _path_for(self, report_id: str) -> Path:
        return self._directory / f"{validate_report_id(report_id)}{_REPORT_SUFFIX}"


@lru_cache(maxsize=1)
def get_report_storage() -> ReportStorage:
    """
    Return a cached storage bound to the configured reports directory.
    """

    return ReportStorage(get_report_settings().reports_dir)
