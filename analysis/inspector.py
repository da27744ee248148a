"""
analysis/inspector.py

Structure and data-quality profiling of a cleaned dataset.

Column roles are detected from header names alone (case-insensitive
substring match), so the SLA analyzer and the report prompt know which
capabilities the upload supports before any value is interpreted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from analysis.normalizer import type_tag

TYPE_SAMPLE_SIZE = 100
PREVIEW_SAMPLE_SIZE = 5
VALUE_SAMPLE_SIZE = 5

DATE_KEYWORDS: tuple[str, ...] = ("date", "time", "created", "updated", "resolved")
STATUS_KEYWORDS: tuple[str, ...] = ("status", "state", "priority", "sla")
USER_KEYWORDS: tuple[str, ...] = ("user", "agent", "assignee", "name", "resolved by")
ID_KEYWORDS: tuple[str, ...] = ("id", "number", "#")

UNKNOWN_TYPE = "unknown"
MIXED_TYPE = "mixed"

# (minimum average completeness %, grade), checked top-down.
_QUALITY_GRADES: tuple[tuple[float, str], ...] = (
    (95.0, "Excellent"),
    (85.0, "Good"),
    (70.0, "Fair"),
)
_POOR_GRADE = "Poor"

_HIGH_MISSING_RATIO = 0.5
_VERY_SMALL_DATASET = 10
_SMALL_DATASET = 100


@dataclass(frozen=True)
class ColumnProfile:
    """
    Completeness and cardinality figures for one column.

    Computed over the full row set, unlike ``data_type`` which is
    inferred from the first ``TYPE_SAMPLE_SIZE`` rows only.
    """

    name: str
    data_type: str
    null_count: int
    null_percentage: float
    unique_count: int
    unique_percentage: float
    sample_values: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataType": self.data_type,
            "nullCount": self.null_count,
            "nullPercentage": self.null_percentage,
            "uniqueCount": self.unique_count,
            "uniquePercentage": self.unique_percentage,
            "sampleValues": list(self.sample_values),
        }


@dataclass(frozen=True)
class DataStructure:
    """
    Read-only summary of a cleaned dataset.
    """

    total_rows: int
    columns: list[str]
    column_types: dict[str, str]
    sample: list[dict[str, Any]]
    date_columns: list[str]
    status_columns: list[str]
    user_columns: list[str]
    id_columns: list[str]
    column_profiles: dict[str, ColumnProfile]
    average_completeness: float
    quality_score: str
    recommendations: list[str]

    @property
    def has_date_columns(self) -> bool:
        return bool(self.date_columns)

    @property
    def has_status_columns(self) -> bool:
        return bool(self.status_columns)

    @property
    def has_user_columns(self) -> bool:
        return bool(self.user_columns)

    @property
    def has_id_columns(self) -> bool:
        return bool(self.id_columns)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "columns": list(self.columns),
            "columnTypes": dict(self.column_types),
            "sample": list(self.sample),
            "hasDateColumns": self.has_date_columns,
            "hasStatusColumns": self.has_status_columns,
            "hasUserColumns": self.has_user_columns,
            "hasIdColumns": self.has_id_columns,
            "dateColumns": list(self.date_columns),
            "statusColumns": list(self.status_columns),
            "userColumns": list(self.user_columns),
            "idColumns": list(self.id_columns),
            "dataQuality": {
                "score": self.quality_score,
                "averageCompleteness": self.average_completeness,
                "columnAnalysis": {
                    name: profile.to_dict() for name, profile in self.column_profiles.items()
                },
                "recommendations": list(self.recommendations),
            },
        }


def inspect_rows(rows: Sequence[Mapping[str, Any]]) -> DataStructure | None:
    """
    Build the structure descriptor for ``rows``; ``None`` when empty.
    """

    if not rows:
        return None

    columns = list(rows[0].keys())
    total_rows = len(rows)
    type_sample = rows[:TYPE_SAMPLE_SIZE]

    column_types = {
        column: infer_column_type([row.get(column) for row in type_sample])
        for column in columns
    }
    profiles = {
        column: _profile_column(column, rows, column_types[column])
        for column in columns
    }

    date_columns = match_columns(columns, DATE_KEYWORDS)
    status_columns = match_columns(columns, STATUS_KEYWORDS)
    user_columns = match_columns(columns, USER_KEYWORDS)
    id_columns = match_columns(columns, ID_KEYWORDS)

    if profiles:
        average_completeness = round(
            sum(100.0 - profile.null_percentage for profile in profiles.values()) / len(profiles),
            1,
        )
    else:
        average_completeness = 0.0

    recommendations = _build_recommendations(
        profiles=profiles,
        total_rows=total_rows,
        has_dates=bool(date_columns),
        has_users=bool(user_columns),
    )

    return DataStructure(
        total_rows=total_rows,
        columns=columns,
        column_types=column_types,
        sample=[dict(row) for row in rows[:PREVIEW_SAMPLE_SIZE]],
        date_columns=date_columns,
        status_columns=status_columns,
        user_columns=user_columns,
        id_columns=id_columns,
        column_profiles=profiles,
        average_completeness=average_completeness,
        quality_score=grade_quality(average_completeness),
        recommendations=recommendations,
    )


def infer_column_type(values: Sequence[Any]) -> str:
    """
    Collapse the type tags of the non-null ``values`` into one type name.
    """

    tags = {type_tag(value) for value in values if not _is_missing(value)}
    if not tags:
        return UNKNOWN_TYPE
    if len(tags) == 1:
        return next(iter(tags))
    return MIXED_TYPE


def match_columns(columns: Sequence[str], keywords: Sequence[str]) -> list[str]:
    """
    Return the columns whose lower-cased name contains any keyword.
    """

    matched = []
    for column in columns:
        lowered = str(column).lower()
        if any(keyword in lowered for keyword in keywords):
            matched.append(column)
    return matched


def grade_quality(average_completeness: float) -> str:
    for minimum, grade in _QUALITY_GRADES:
        if average_completeness >= minimum:
            return grade
    return _POOR_GRADE


def _profile_column(
    column: str,
    rows: Sequence[Mapping[str, Any]],
    data_type: str,
) -> ColumnProfile:
    values = [row.get(column) for row in rows]
    present = [value for value in values if not _is_missing(value)]
    null_count = len(values) - len(present)

    # Keyed by type tag so 1 and True stay distinct values.
    unique_count = len({(type_tag(value), _hashable(value)) for value in present})

    return ColumnProfile(
        name=column,
        data_type=data_type,
        null_count=null_count,
        null_percentage=round(null_count / len(values) * 100, 1) if values else 0.0,
        unique_count=unique_count,
        unique_percentage=round(unique_count / len(present) * 100, 1) if present else 0.0,
        sample_values=present[:VALUE_SAMPLE_SIZE],
    )


def _build_recommendations(
    *,
    profiles: Mapping[str, ColumnProfile],
    total_rows: int,
    has_dates: bool,
    has_users: bool,
) -> list[str]:
    recommendations: list[str] = []

    for name, profile in profiles.items():
        if profile.null_count > total_rows * _HIGH_MISSING_RATIO:
            recommendations.append(f'Column "{name}" has more than 50% missing values')
        present_count = total_rows - profile.null_count
        if profile.unique_count == 1 and present_count > 1:
            recommendations.append(f'Column "{name}" has the same value for all rows')

    if not has_dates:
        recommendations.append("No date columns detected - trend analysis will be limited")
    if not has_users:
        recommendations.append("No agent or user columns detected - performance breakdowns will be limited")

    if total_rows < _VERY_SMALL_DATASET:
        recommendations.append("Dataset is very small (less than 10 rows)")
    elif total_rows < _SMALL_DATASET:
        recommendations.append("Dataset is small (less than 100 rows) - insights may be limited")

    return recommendations


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _hashable(value: Any) -> Any:
    try:
        hash(value)
    except TypeError:
        return repr(value)
    return value
