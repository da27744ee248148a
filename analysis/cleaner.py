"""
analysis/cleaner.py

Row-level data quality pass that runs before structure inspection and
SLA analysis.

Problems are reported through ``errors`` and ``warnings`` on the returned
:class:`CleaningResult`; nothing here raises for bad data content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from analysis.normalizer import normalize_value

logger = logging.getLogger(__name__)

NO_DATA_ERROR = "No data provided"
NO_COLUMNS_ERROR = "No columns detected in data"
HEAVY_FILTERING_WARNING = "More than 20% of rows were filtered out due to data quality issues"

# Minimum share of input rows that must survive cleaning before the
# heavy-filtering warning is raised.
_MIN_RETAINED_RATIO = 0.8


@dataclass(frozen=True)
class CleaningResult:
    """
    Outcome of one cleaning pass.
    """

    data: list[dict[str, Any]]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    original_count: int = 0
    cleaned_count: int = 0

    @property
    def columns(self) -> list[str]:
        return list(self.data[0].keys()) if self.data else []

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "originalCount": self.original_count,
            "cleanedCount": self.cleaned_count,
        }


def clean_rows(rows: Any) -> CleaningResult:
    """
    Normalize every cell and drop rows that carry no usable value.

    The column set is taken from the first row only. Later rows are read
    through that key list: extra keys are ignored and missing keys become
    ``None``.
    """

    if not isinstance(rows, Sequence) or isinstance(rows, (str, bytes)) or not rows:
        original_count = len(rows) if isinstance(rows, Sequence) else 0
        return CleaningResult(data=[], errors=[NO_DATA_ERROR], original_count=original_count)

    first_row = rows[0]
    columns = [key for key in first_row.keys() if key is not None] if isinstance(first_row, Mapping) else []
    if not columns:
        return CleaningResult(data=[], errors=[NO_COLUMNS_ERROR], original_count=len(rows))

    warnings: list[str] = []
    cleaned: list[dict[str, Any]] = []

    for index, row in enumerate(rows, start=1):
        source: Mapping[str, Any] = row if isinstance(row, Mapping) else {}
        cleaned_row: dict[str, Any] = {}
        has_value = False

        for column in columns:
            raw_value = source.get(column)
            if raw_value is None or raw_value == "":
                cleaned_row[column] = None
                continue
            typed_value = normalize_value(raw_value)
            cleaned_row[column] = typed_value
            if typed_value is not None:
                has_value = True

        if has_value:
            cleaned.append(cleaned_row)
        else:
            warnings.append(f"Row {index} contains no valid data")

    if len(cleaned) < len(rows) * _MIN_RETAINED_RATIO:
        warnings.append(HEAVY_FILTERING_WARNING)

    logger.debug(
        "Cleaned rows original=%d cleaned=%d warnings=%d",
        len(rows),
        len(cleaned),
        len(warnings),
    )

    return CleaningResult(
        data=cleaned,
        errors=[],
        warnings=warnings,
        original_count=len(rows),
        cleaned_count=len(cleaned),
    )
