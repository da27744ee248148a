"""Structured output schemas for generated reports.

Each report type has one model. Field names are snake_case in Python and
camelCase on the wire, matching the JSON the model is asked to return.
"""

from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ReportType = Literal["executive", "detailed", "presentation"]

DEFAULT_REPORT_TYPE: ReportType = "detailed"


class _ReportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )


def _as_text(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


class KeyMetric(_ReportModel):
    label: str = Field(min_length=1)
    value: str
    trend: str = "stable"
    impact: str = "medium"

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, value: Any) -> Any:
        return _as_text(value)


class Finding(_ReportModel):
    finding: str = Field(min_length=1)
    impact: str = ""
    priority: str = "medium"


class Recommendation(_ReportModel):
    action: str = Field(min_length=1)
    timeline: str = ""
    impact: str = ""


class ExecutiveReport(_ReportModel):
    """Executive summary: headline metrics, findings and actions."""

    title: str = Field(min_length=1)
    key_metrics: List[KeyMetric] = Field(default_factory=list)
    critical_findings: List[Finding] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    summary: str = Field(min_length=1)

    @classmethod
    def from_statistics(cls, sla: Dict[str, Any], total_records: int) -> "ExecutiveReport":
        response = sla["firstResponseSLA"]
        resolution = sla["resolutionSLA"]
        violations = response["violations"] + resolution["violations"]
        return cls(
            title="IT Support SLA Performance Executive Summary",
            key_metrics=[
                KeyMetric(label="First Response SLA Compliance", value=f"{response['compliancePercentage']}%", impact="high"),
                KeyMetric(label="Resolution SLA Compliance", value=f"{resolution['compliancePercentage']}%", impact="high"),
                KeyMetric(label="Total Tickets", value=str(total_records)),
                KeyMetric(label="SLA Violations", value=str(violations), impact="high"),
            ],
            critical_findings=[
                Finding(finding=text, impact="Derived from computed SLA statistics", priority="high")
                for text in sla["insights"]["recommendations"]
            ],
            recommendations=[
                Recommendation(
                    action="Address the SLA violations identified in the data",
                    timeline="immediate",
                    impact="Improve SLA compliance",
                )
            ],
            summary=f"Analysis based on {total_records} tickets with {violations} total SLA violations.",
        )


class Overview(_ReportModel):
    total_records: Union[int, str] = 0
    time_span: str = ""
    key_trends: List[str] = Field(default_factory=list)


class SLAMetric(_ReportModel):
    compliance: str
    violations: int = 0
    total: int = 0

    @field_validator("compliance", mode="before")
    @classmethod
    def coerce_compliance(cls, value: Any) -> Any:
        return _as_text(value)


class SLAMetrics(_ReportModel):
    first_response_sla: SLAMetric = Field(alias="firstResponseSLA")
    resolution_sla: SLAMetric = Field(alias="resolutionSLA")


class PerformanceMetric(_ReportModel):
    metric: str = Field(min_length=1)
    current: str
    benchmark: str = ""
    status: str = "warning"

    @field_validator("current", "benchmark", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class ProblemArea(_ReportModel):
    area: str = Field(min_length=1)
    volume: int = 0
    percentage: Union[float, str] = 0
    description: str = ""


class DetailedReport(_ReportModel):
    """Detailed analysis: overview, SLA metrics, benchmarks, problem areas."""

    title: str = "Detailed SLA Analysis"
    overview: Overview
    sla_metrics: SLAMetrics = Field(alias="slaMetrics")
    performance_metrics: List[PerformanceMetric] = Field(default_factory=list)
    problem_areas: List[ProblemArea] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)

    @classmethod
    def from_statistics(cls, sla: Dict[str, Any], total_records: int) -> "DetailedReport":
        response = sla["firstResponseSLA"]
        resolution = sla["resolutionSLA"]
        return cls(
            overview=Overview(
                total_records=total_records,
                time_span="Based on uploaded data",
                key_trends=list(sla["insights"]["recommendations"]) or ["No SLA thresholds breached"],
            ),
            sla_metrics=SLAMetrics(
                first_response_sla=SLAMetric(
                    compliance=f"{response['compliancePercentage']}%",
                    violations=response["violations"],
                    total=response["total"],
                ),
                resolution_sla=SLAMetric(
                    compliance=f"{resolution['compliancePercentage']}%",
                    violations=resolution["violations"],
                    total=resolution["total"],
                ),
            ),
            performance_metrics=[
                PerformanceMetric(
                    metric="First Response SLA Compliance",
                    current=f"{response['compliancePercentage']}%",
                    benchmark="95%",
                    status=benchmark_status(response["compliancePercentage"], good=95.0, warning=90.0),
                ),
                PerformanceMetric(
                    metric="Resolution SLA Compliance",
                    current=f"{resolution['compliancePercentage']}%",
                    benchmark="90%",
                    status=benchmark_status(resolution["compliancePercentage"], good=90.0, warning=85.0),
                ),
            ],
            problem_areas=[
                ProblemArea(
                    area="Response Time Violations",
                    volume=response["violations"],
                    percentage=response["violationPercentage"],
                    description="Tickets exceeding first response SLA targets",
                ),
                ProblemArea(
                    area="Resolution Time Violations",
                    volume=resolution["violations"],
                    percentage=resolution["violationPercentage"],
                    description="Tickets exceeding resolution SLA targets",
                ),
            ],
            insights=[
                f"{response['violations'] + resolution['violations']} total SLA violations identified "
                "across response and resolution metrics",
            ],
        )


class SlideMetric(_ReportModel):
    label: str = Field(min_length=1)
    value: str
    highlight: bool = False

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, value: Any) -> Any:
        return _as_text(value)


class SlideContent(_ReportModel):
    headline: str = ""
    metrics: List[SlideMetric] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    visual: str = ""


class Slide(_ReportModel):
    title: str = Field(min_length=1)
    type: str = "analysis"
    content: SlideContent = Field(default_factory=SlideContent)


class PresentationReport(_ReportModel):
    """Slide deck for leadership review."""

    slides: List[Slide] = Field(min_length=1)
    key_message: str = Field(min_length=1)
    call_to_action: str = ""

    @classmethod
    def from_statistics(cls, sla: Dict[str, Any], total_records: int) -> "PresentationReport":
        response = sla["firstResponseSLA"]
        resolution = sla["resolutionSLA"]
        violations = response["violations"] + resolution["violations"]
        return cls(
            slides=[
                Slide(
                    title="SLA Performance Overview",
                    type="overview",
                    content=SlideContent(
                        headline="IT Support SLA Performance Summary",
                        metrics=[
                            SlideMetric(label="First Response SLA", value=f"{response['compliancePercentage']}%", highlight=True),
                            SlideMetric(label="Resolution SLA", value=f"{resolution['compliancePercentage']}%", highlight=True),
                            SlideMetric(label="Total Violations", value=str(violations)),
                        ],
                        insights=[f"Analysis based on {total_records} support tickets from uploaded CSV"],
                        visual="SLA compliance dashboard",
                    ),
                ),
                Slide(
                    title="SLA Violations Breakdown",
                    content=SlideContent(
                        headline="Performance Areas Requiring Attention",
                        metrics=[
                            SlideMetric(label="Response Time Violations", value=str(response["violations"]), highlight=True),
                            SlideMetric(label="Resolution Time Violations", value=str(resolution["violations"]), highlight=True),
                        ],
                        insights=list(sla["insights"]["recommendations"]),
                        visual="Violation breakdown",
                    ),
                ),
            ],
            key_message=(
                f"SLA Performance: {response['compliancePercentage']}% response compliance, "
                f"{resolution['compliancePercentage']}% resolution compliance"
            ),
            call_to_action=f"Address {violations} total SLA violations to improve service delivery",
        )


ReportDocument = Union[ExecutiveReport, DetailedReport, PresentationReport]

REPORT_SCHEMAS: Dict[str, type] = {
    "executive": ExecutiveReport,
    "detailed": DetailedReport,
    "presentation": PresentationReport,
}


def resolve_report_type(report_type: Any) -> ReportType:
    """Return a known report type; unknown values fall back to ``detailed``."""
    normalized = str(report_type or "").strip().lower()
    if normalized in REPORT_SCHEMAS:
        return normalized  # type: ignore[return-value]
    return DEFAULT_REPORT_TYPE


def benchmark_status(percentage: Any, *, good: float, warning: float) -> str:
    """Grade a percentage string against good/warning thresholds."""
    try:
        value = float(str(percentage).rstrip("%"))
    except ValueError:
        return "critical"
    if value >= good:
        return "good"
    if value >= warning:
        return "warning"
    return "critical"
