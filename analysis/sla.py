"""
analysis/sla.py

Heuristic SLA performance analyzer for support-ticket style datasets.

Recognised fields are located through ordered candidate column names; a
row that carries none of the candidates for a field falls back to a fixed
default (agent/category ``"Unknown"``, priority ``"Medium"``, created date
"now"). Status text is classified by keyword:

    violation   violated, breach, missed, overdue, fail
    compliant   within, met, compliant, achieved, success

Status text matching neither list still counts towards a bucket's
``total`` but towards neither ``violations`` nor ``compliance``, so for
every bucket ``violations + compliance <= total``.

Percentages
-----------
compliancePercentage = (total - violations) / total * 100
violationPercentage  = violations / total * 100

Both are one-decimal strings, and ``"0"`` when ``total`` is zero.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence

from analysis.normalizer import parse_strict_date

logger = logging.getLogger(__name__)

AGENT_COLUMNS: tuple[str, ...] = ("Agent", "Resolved by", "Assignee")
CATEGORY_COLUMNS: tuple[str, ...] = ("Category", "Sub-Category", "Type")
PRIORITY_COLUMNS: tuple[str, ...] = ("Priority", "Urgency")
CREATED_DATE_COLUMNS: tuple[str, ...] = (
    "Created",
    "Created Date",
    "Created At",
    "Created Time",
    "Created On",
    "Date",
    "Opened",
    "created_at",
)
FIRST_RESPONSE_COLUMNS: tuple[str, ...] = (
    "First Response Status",
    "First Response SLA",
    "Response Status",
    "first_response_status",
)
RESOLUTION_COLUMNS: tuple[str, ...] = (
    "Resolution Status",
    "Resolution SLA",
    "Resolve Status",
    "resolution_status",
)

VIOLATION_KEYWORDS: tuple[str, ...] = ("violated", "breach", "missed", "overdue", "fail")
COMPLIANCE_KEYWORDS: tuple[str, ...] = ("within", "met", "compliant", "achieved", "success")

UNKNOWN_AGENT = "Unknown"
UNKNOWN_CATEGORY = "Unknown"
DEFAULT_PRIORITY = "Medium"

WEEKDAY_NAMES: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

TOP_PERFORMER_COUNT = 3
IMPROVEMENT_AREA_COUNT = 3
AGENT_COMPLIANCE_THRESHOLD = 90.0
FIRST_RESPONSE_TARGET = 95.0
RESOLUTION_TARGET = 90.0
AGENT_SPREAD_THRESHOLD = 20.0

_FALLBACK_DATE_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
)


# ---------------------------------------------------------------------------
# Field resolution and status classification
# ---------------------------------------------------------------------------


class SLAStatus(str, Enum):
    VIOLATION = "violation"
    COMPLIANT = "compliant"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ResolvedField:
    """
    A candidate column that was present with a non-blank value.
    """

    column: str
    value: Any


def resolve_field(row: Mapping[str, Any], candidates: Sequence[str]) -> ResolvedField | None:
    """
    Return the first candidate column holding a non-blank value.

    ``None`` means no candidate matched. Falsy but meaningful values such
    as ``0``, ``False`` or ``"0"`` count as present.
    """

    for column in candidates:
        if column not in row:
            continue
        value = row[column]
        if _is_blank(value):
            continue
        return ResolvedField(column=column, value=value)
    return None


def classify_status(value: Any) -> SLAStatus:
    lowered = display_value(value).lower()
    if any(keyword in lowered for keyword in VIOLATION_KEYWORDS):
        return SLAStatus.VIOLATION
    if any(keyword in lowered for keyword in COMPLIANCE_KEYWORDS):
        return SLAStatus.COMPLIANT
    return SLAStatus.UNRECOGNIZED


def display_value(value: Any) -> str:
    """
    Render a cleaned cell as a grouping label.
    """

    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def format_percentage(part: float, total: float) -> str:
    if total <= 0:
        return "0"
    return f"{part / total * 100:.1f}"


def format_rate(rate: float) -> str:
    """Render a group rate as a one-decimal string clamped to [0, 100]."""
    return f"{min(100.0, max(0.0, rate)):.1f}"


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass
class SLABucket:
    """
    Running counters for one SLA measure.
    """

    total: int = 0
    violations: int = 0
    compliance: int = 0

    def record(self, status: SLAStatus) -> None:
        self.total += 1
        if status is SLAStatus.VIOLATION:
            self.violations += 1
        elif status is SLAStatus.COMPLIANT:
            self.compliance += 1

    @property
    def compliance_rate(self) -> float | None:
        if self.total == 0:
            return None
        return (self.total - self.violations) / self.total * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "violations": self.violations,
            "compliance": self.compliance,
            "compliancePercentage": format_percentage(self.total - self.violations, self.total),
            "violationPercentage": format_percentage(self.violations, self.total),
        }


@dataclass
class GroupStats:
    """
    Ticket count plus both SLA buckets for one grouping key.
    """

    total: int = 0
    first_response: SLABucket = field(default_factory=SLABucket)
    resolution: SLABucket = field(default_factory=SLABucket)
    categories: Counter = field(default_factory=Counter)

    @property
    def response_violations(self) -> int:
        return self.first_response.violations

    @property
    def resolution_violations(self) -> int:
        return self.resolution.violations

    @property
    def total_violations(self) -> int:
        return self.response_violations + self.resolution_violations

    @property
    def compliance_rate(self) -> float:
        # Unbounded: a ticket that breaches both SLAs counts twice, so the
        # rate can go below zero. Rankings and the agent spread use this
        # value; only the rendered rate is clamped.
        if self.total == 0:
            return 100.0
        return (self.total - self.total_violations) / self.total * 100

    @property
    def violation_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return min(100.0, self.total_violations / self.total * 100)

    @property
    def top_category(self) -> str | None:
        if not self.categories:
            return None
        return self.categories.most_common(1)[0][0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "responseViolations": self.response_violations,
            "resolutionViolations": self.resolution_violations,
            "totalViolations": self.total_violations,
            "complianceRate": format_rate(self.compliance_rate),
            "violationRate": f"{self.violation_rate:.1f}",
            "firstResponseSLA": self.first_response.to_dict(),
            "resolutionSLA": self.resolution.to_dict(),
        }


@dataclass(frozen=True)
class RankedGroup:
    name: str
    total_tickets: int
    total_violations: int
    compliance_rate: float
    violation_rate: float

    @classmethod
    def from_stats(cls, name: str, stats: GroupStats) -> "RankedGroup":
        return cls(
            name=name,
            total_tickets=stats.total,
            total_violations=stats.total_violations,
            compliance_rate=stats.compliance_rate,
            violation_rate=stats.violation_rate,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "totalTickets": self.total_tickets,
            "totalViolations": self.total_violations,
            "complianceRate": format_rate(self.compliance_rate),
            "violationRate": f"{self.violation_rate:.1f}",
        }


@dataclass(frozen=True)
class SLAInsights:
    top_performers: list[RankedGroup]
    improvement_areas: list[RankedGroup]
    category_ranking: list[RankedGroup]
    weekday_ranking: list[RankedGroup]
    recommendations: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "topPerformers": [group.to_dict() for group in self.top_performers],
            "improvementAreas": [group.to_dict() for group in self.improvement_areas],
            "categoryRanking": [group.to_dict() for group in self.category_ranking],
            "weekdayRanking": [group.to_dict() for group in self.weekday_ranking],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class SLAAnalysis:
    """
    Aggregate SLA view over one cleaned dataset.
    """

    total_tickets: int
    first_response: SLABucket
    resolution: SLABucket
    agents: dict[str, GroupStats]
    categories: dict[str, GroupStats]
    priorities: dict[str, GroupStats]
    by_date: dict[str, GroupStats]
    by_weekday: dict[int, GroupStats]
    by_month: dict[str, GroupStats]
    undated_tickets: int
    insights: SLAInsights

    @property
    def total_violations(self) -> int:
        return self.first_response.violations + self.resolution.violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTickets": self.total_tickets,
            "firstResponseSLA": self.first_response.to_dict(),
            "resolutionSLA": self.resolution.to_dict(),
            "agents": {
                name: {**stats.to_dict(), "topCategory": stats.top_category}
                for name, stats in self.agents.items()
            },
            "categories": {name: stats.to_dict() for name, stats in self.categories.items()},
            "priorities": {name: stats.to_dict() for name, stats in self.priorities.items()},
            "timeAnalysis": {
                "byDate": {key: self.by_date[key].to_dict() for key in sorted(self.by_date)},
                "byWeekday": {
                    str(index): {"name": WEEKDAY_NAMES[index], **self.by_weekday[index].to_dict()}
                    for index in sorted(self.by_weekday)
                },
                "byMonth": {key: self.by_month[key].to_dict() for key in sorted(self.by_month)},
                "undatedTickets": self.undated_tickets,
            },
            "insights": self.insights.to_dict(),
        }


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


def analyze_sla(
    rows: Sequence[Mapping[str, Any]],
    *,
    now: datetime | None = None,
) -> SLAAnalysis | None:
    """
    Aggregate SLA compliance for ``rows``; ``None`` for an empty dataset.

    ``now`` is the created-date fallback for rows without a date column.
    """

    if not rows:
        return None

    reference_time = _as_naive_utc(now or datetime.now(timezone.utc))

    first_response = SLABucket()
    resolution = SLABucket()
    agents: dict[str, GroupStats] = {}
    categories: dict[str, GroupStats] = {}
    priorities: dict[str, GroupStats] = {}
    by_date: dict[str, GroupStats] = {}
    by_weekday: dict[int, GroupStats] = {}
    by_month: dict[str, GroupStats] = {}
    undated_tickets = 0

    for row in rows:
        agent = _resolve_label(row, AGENT_COLUMNS, UNKNOWN_AGENT)
        category = _resolve_label(row, CATEGORY_COLUMNS, UNKNOWN_CATEGORY)
        priority = _resolve_label(row, PRIORITY_COLUMNS, DEFAULT_PRIORITY)

        agent_stats = _group(agents, agent)
        groups = [agent_stats, _group(categories, category), _group(priorities, priority)]

        created = resolve_ticket_date(row, reference_time)
        if created is None:
            undated_tickets += 1
        else:
            groups.append(_group(by_date, created.strftime("%Y-%m-%d")))
            groups.append(_group(by_weekday, (created.weekday() + 1) % 7))
            groups.append(_group(by_month, created.strftime("%Y-%m")))

        for group in groups:
            group.total += 1
        agent_stats.categories[category] += 1

        response_field = resolve_field(row, FIRST_RESPONSE_COLUMNS)
        if response_field is not None:
            status = classify_status(response_field.value)
            first_response.record(status)
            for group in groups:
                group.first_response.record(status)

        resolution_field = resolve_field(row, RESOLUTION_COLUMNS)
        if resolution_field is not None:
            status = classify_status(resolution_field.value)
            resolution.record(status)
            for group in groups:
                group.resolution.record(status)

    insights = derive_insights(
        first_response=first_response,
        resolution=resolution,
        agents=agents,
        categories=categories,
        by_weekday=by_weekday,
    )

    logger.debug(
        "SLA analysis tickets=%d response_total=%d response_violations=%d "
        "resolution_total=%d resolution_violations=%d agents=%d",
        len(rows),
        first_response.total,
        first_response.violations,
        resolution.total,
        resolution.violations,
        len(agents),
    )

    return SLAAnalysis(
        total_tickets=len(rows),
        first_response=first_response,
        resolution=resolution,
        agents=agents,
        categories=categories,
        priorities=priorities,
        by_date=by_date,
        by_weekday=by_weekday,
        by_month=by_month,
        undated_tickets=undated_tickets,
        insights=insights,
    )


def derive_insights(
    *,
    first_response: SLABucket,
    resolution: SLABucket,
    agents: Mapping[str, GroupStats],
    categories: Mapping[str, GroupStats],
    by_weekday: Mapping[int, GroupStats],
) -> SLAInsights:
    """
    Rank agents, categories and weekdays and derive rule-based recommendations.
    """

    ranked_agents = sorted(
        (RankedGroup.from_stats(name, stats) for name, stats in agents.items()),
        key=lambda group: (-group.compliance_rate, group.name),
    )
    improvement_areas = sorted(
        (group for group in ranked_agents if group.compliance_rate < AGENT_COMPLIANCE_THRESHOLD),
        key=lambda group: (group.compliance_rate, group.name),
    )[:IMPROVEMENT_AREA_COUNT]

    category_ranking = sorted(
        (RankedGroup.from_stats(name, stats) for name, stats in categories.items()),
        key=lambda group: (group.compliance_rate, group.name),
    )

    weekday_entries = [
        (index, RankedGroup.from_stats(WEEKDAY_NAMES[index], stats))
        for index, stats in sorted(by_weekday.items())
        if stats.total > 0
    ]
    weekday_entries.sort(key=lambda entry: (-entry[1].violation_rate, entry[0]))

    return SLAInsights(
        top_performers=ranked_agents[:TOP_PERFORMER_COUNT],
        improvement_areas=improvement_areas,
        category_ranking=category_ranking,
        weekday_ranking=[group for _, group in weekday_entries],
        recommendations=_build_recommendations(first_response, resolution, ranked_agents),
    )


def resolve_ticket_date(row: Mapping[str, Any], fallback: datetime) -> datetime | None:
    """
    Return the ticket's created date, ``fallback`` when no date column is
    present, or ``None`` when the value cannot be read as a date.
    """

    resolved = resolve_field(row, CREATED_DATE_COLUMNS)
    if resolved is None:
        return fallback
    return parse_ticket_date(resolved.value)


def parse_ticket_date(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return _as_naive_utc(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return _as_naive_utc(datetime.fromisoformat(iso_text))
    except ValueError:
        pass

    parsed = parse_strict_date(text)
    if parsed is not None:
        return parsed

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _build_recommendations(
    first_response: SLABucket,
    resolution: SLABucket,
    ranked_agents: Sequence[RankedGroup],
) -> list[str]:
    recommendations: list[str] = []

    response_rate = first_response.compliance_rate
    if response_rate is not None and response_rate < FIRST_RESPONSE_TARGET:
        recommendations.append(
            f"First response SLA compliance is {response_rate:.1f}% against a "
            f"{FIRST_RESPONSE_TARGET:.0f}% target. Review triage coverage and "
            "first-touch workflows."
        )

    resolution_rate = resolution.compliance_rate
    if resolution_rate is not None and resolution_rate < RESOLUTION_TARGET:
        recommendations.append(
            f"Resolution SLA compliance is {resolution_rate:.1f}% against a "
            f"{RESOLUTION_TARGET:.0f}% target. Investigate escalation paths and "
            "long-running tickets."
        )

    if len(ranked_agents) >= 2:
        best, worst = ranked_agents[0], ranked_agents[-1]
        spread = best.compliance_rate - worst.compliance_rate
        if spread > AGENT_SPREAD_THRESHOLD:
            recommendations.append(
                f"Agent compliance varies by {spread:.1f} percentage points between "
                f"{best.name} ({format_rate(best.compliance_rate)}%) and {worst.name} "
                f"({format_rate(worst.compliance_rate)}%). Pair lower performers with top "
                "performers for coaching."
            )

    return recommendations


def _resolve_label(row: Mapping[str, Any], candidates: Sequence[str], default: str) -> str:
    resolved = resolve_field(row, candidates)
    if resolved is None:
        return default
    return display_value(resolved.value)


def _group(groups: dict[Any, GroupStats], key: Any) -> GroupStats:
    stats = groups.get(key)
    if stats is None:
        stats = GroupStats()
        groups[key] = stats
    return stats


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()
