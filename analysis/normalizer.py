"""
analysis/normalizer.py

Cell-level type normalization for uploaded CSV values.

Every raw cell is typed independently of its column:

    ""/None / whitespace  -> None
    ^[0-9]+$              -> int
    ^[0-9]*\\.[0-9]+$      -> float
    strict date formats   -> ISO-8601 UTC timestamp string
    true/yes/1/y          -> True
    false/no/0/n          -> False
    anything else         -> trimmed string

Digit strings too large for an int or a finite float keep their text.

Two cells of the same column can therefore end up with different types;
the inspector reports such columns as ``mixed``.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

_INTEGER_PATTERN = re.compile(r"^[0-9]+$")
_FLOAT_PATTERN = re.compile(r"^[0-9]*\.[0-9]+$")

# Ordered: the first format whose shape and calendar values match wins, so
# "01/02/2024" is always read as January 2nd, never as February 1st.
DATE_FORMATS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"), "%Y-%m-%d"),
    (re.compile(r"^[0-9]{2}/[0-9]{2}/[0-9]{4}$"), "%m/%d/%Y"),
    (re.compile(r"^[0-9]{2}/[0-9]{2}/[0-9]{4}$"), "%d/%m/%Y"),
    (re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}$"), "%Y-%m-%d %H:%M:%S"),
)

TRUE_VALUES = frozenset({"true", "yes", "1", "y"})
FALSE_VALUES = frozenset({"false", "no", "0", "n"})

ISO_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"


def normalize_value(value: Any) -> Any:
    """
    Convert one raw cell value into its typed form.

    Non-string values are returned unchanged, so rows that were already
    normalized (for example the preview data echoed back by a client) pass
    through a second time without modification.
    """

    if value is None:
        return None
    if not isinstance(value, str):
        return value

    trimmed = value.strip()
    if not trimmed:
        return None

    if _INTEGER_PATTERN.match(trimmed):
        try:
            return int(trimmed, 10)
        except ValueError:
            # Longer than the interpreter's int conversion limit.
            return trimmed

    if _FLOAT_PATTERN.match(trimmed):
        number = float(trimmed)
        # Overflowing decimals keep their text so the row stays JSON-safe.
        return number if math.isfinite(number) else trimmed

    parsed = parse_strict_date(trimmed)
    if parsed is not None:
        return to_iso_timestamp(parsed)

    lowered = trimmed.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False

    return trimmed


def parse_strict_date(value: str) -> datetime | None:
    """
    Parse ``value`` against ``DATE_FORMATS`` requiring an exact shape match.

    ``strptime`` alone accepts unpadded fields such as ``1/2/2024``; the
    shape pattern rejects those before the calendar check runs.
    """

    for shape, fmt in DATE_FORMATS:
        if not shape.match(value):
            continue
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def to_iso_timestamp(value: datetime) -> str:
    """
    Render a naive datetime as a millisecond-precision UTC ISO-8601 string.
    """

    return value.strftime(ISO_TIMESTAMP_FORMAT)


def type_tag(value: Any) -> str:
    """
    Return the coarse type name used for column type inference.
    """

    # bool is an int subclass and must be checked first.
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"
