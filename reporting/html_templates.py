"""
reporting/html_templates.py

Static HTML renderers for generated reports.

Every dynamic value passes through ``html.escape``; the renderers never
compute statistics themselves, they only place values that the analysis
layer has already formatted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from html import escape
from typing import Any, Iterable, Mapping

from llm_synthesis.schema import (
    DetailedReport,
    ExecutiveReport,
    PresentationReport,
    ReportDocument,
    resolve_report_type,
)

_BASE_STYLE = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
    font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
    background: #111111;
    color: #e0e0e0;
    line-height: 1.6;
}
.container { max-width: 1200px; margin: 0 auto; padding: 2rem; }
.header {
    background: #1e1e1e;
    padding: 2rem;
    border-radius: 12px;
    border-bottom: 4px solid #26de81;
    margin-bottom: 2rem;
    text-align: center;
}
h1 { font-size: 2.4rem; color: #ffffff; }
h2 { color: #26de81; margin-bottom: 1rem; }
.subtitle { color: #b0b0b0; margin-top: 0.5rem; }
.section {
    background: #1a1a1a;
    border: 1px solid #333333;
    border-radius: 12px;
    padding: 2rem;
    margin-bottom: 2rem;
}
.metrics-grid {
    display: grid;
    grid-template-columns: repeat(auto-fit, minmax(220px, 1fr));
    gap: 1.5rem;
    margin-bottom: 2rem;
}
.metric-card {
    background: #1a1a1a;
    border: 1px solid #333333;
    border-radius: 12px;
    padding: 1.5rem;
    text-align: center;
}
.metric-number { font-size: 2.2rem; font-weight: bold; color: #26de81; display: block; }
.metric-label { color: #ffffff; }
.item {
    background: #242424;
    border-radius: 8px;
    padding: 1rem 1.5rem;
    margin-bottom: 1rem;
    border-left: 4px solid #26de81;
}
.item.problem { border-left-color: #ff4757; }
.item.agent { border-left-color: #54a0ff; }
.item p { color: #b0b0b0; }
table { width: 100%; border-collapse: collapse; }
th, td { text-align: left; padding: 0.6rem; border-bottom: 1px solid #333333; }
.status-good { color: #26de81; }
.status-warning { color: #feca57; }
.status-critical { color: #ff4757; }
.slide { min-height: 60vh; }
.call-to-action {
    background: #ff4757;
    color: #ffffff;
    padding: 1.5rem;
    border-radius: 10px;
    text-align: center;
    font-weight: bold;
}
"""


def render_report(
    report_type: str,
    document: ReportDocument,
    sla_analysis: Mapping[str, Any] | None,
    total_records: int,
    *,
    generated_at: datetime | None = None,
) -> str:
    """
    Render ``document`` with the template for ``report_type``.
    """

    timestamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M UTC")
    resolved_type = resolve_report_type(report_type)

    if resolved_type == "executive" and isinstance(document, ExecutiveReport):
        return render_executive(document, total_records, timestamp)
    if resolved_type == "presentation" and isinstance(document, PresentationReport):
        return render_presentation(document, total_records, timestamp)
    if isinstance(document, DetailedReport):
        return render_detailed(document, sla_analysis or {}, total_records, timestamp)
    raise TypeError(
        f"Report document {type(document).__name__} does not match report type '{resolved_type}'."
    )


def render_executive(document: ExecutiveReport, total_records: int, timestamp: str) -> str:
    metrics = "".join(
        f'<div class="metric-card"><span class="metric-number">{_e(metric.value)}</span>'
        f'<span class="metric-label">{_e(metric.label)}</span></div>'
        for metric in document.key_metrics
    )
    findings = "".join(
        f'<div class="item problem"><strong>{_e(item.finding)}</strong>'
        f"<p>{_e(item.impact)} (priority: {_e(item.priority)})</p></div>"
        for item in document.critical_findings
    )
    recommendations = "".join(
        f'<div class="item"><strong>{_e(item.action)}</strong>'
        f"<p>Timeline: {_e(item.timeline)}. Impact: {_e(item.impact)}</p></div>"
        for item in document.recommendations
    )

    body = (
        _header(document.title, timestamp, total_records)
        + f'<div class="metrics-grid">{metrics}</div>'
        + _section("Critical Findings", findings)
        + _section("Recommendations", recommendations)
        + _section("Summary", f"<p>{_e(document.summary)}</p>")
    )
    return _page(document.title, body)


def render_detailed(
    document: DetailedReport,
    sla_analysis: Mapping[str, Any],
    total_records: int,
    timestamp: str,
) -> str:
    overview = document.overview
    overview_html = (
        f"<p><strong>Total Records:</strong> {_e(overview.total_records)}</p>"
        f"<p><strong>Analysis Period:</strong> {_e(overview.time_span)}</p>"
        + _list(overview.key_trends)
    )

    sla_cards = "".join(
        f'<div class="metric-card"><h3>{label}</h3>'
        f'<span class="metric-number">{_e(metric.compliance)}</span>'
        f'<p class="subtitle">{_e(metric.violations)} violations out of {_e(metric.total)} tickets</p></div>'
        for label, metric in (
            ("First Response SLA", document.sla_metrics.first_response_sla),
            ("Resolution SLA", document.sla_metrics.resolution_sla),
        )
    )

    rows = "".join(
        f"<tr><td>{_e(item.metric)}</td><td>{_e(item.current)}</td><td>{_e(item.benchmark)}</td>"
        f'<td class="status-{_e(item.status.lower())}">{_e(item.status)}</td></tr>'
        for item in document.performance_metrics
    )
    table = (
        "<table><tr><th>Metric</th><th>Current</th><th>Benchmark</th><th>Status</th></tr>"
        f"{rows}</table>"
    )

    problems = "".join(
        f'<div class="item problem"><strong>{_e(item.area)}</strong>'
        f"<p>{_e(item.volume)} tickets ({_e(_percent(item.percentage))}). {_e(item.description)}</p></div>"
        for item in document.problem_areas
    )

    body = (
        _header(document.title, timestamp, total_records)
        + _section("Overview", overview_html)
        + _section("SLA Performance Metrics", f'<div class="metrics-grid">{sla_cards}</div>')
        + _section("Performance Against Benchmarks", table)
        + _section("Problem Areas", problems)
        + _section("Agent Performance", _agent_items(sla_analysis.get("agents", {})))
        + _section("Insights", "".join(f'<div class="item">{_e(text)}</div>' for text in document.insights))
    )
    return _page(document.title, body)


def render_presentation(document: PresentationReport, total_records: int, timestamp: str) -> str:
    slides = []
    for number, slide in enumerate(document.slides, start=1):
        content = slide.content
        metrics = "".join(
            f'<div class="metric-card"><span class="metric-number">{_e(metric.value)}</span>'
            f'<span class="metric-label">{_e(metric.label)}</span></div>'
            for metric in content.metrics
        )
        slides.append(
            f'<div class="section slide" id="slide-{number}">'
            f"<h2>{number}. {_e(slide.title)}</h2>"
            f"<h3>{_e(content.headline)}</h3>"
            f'<div class="metrics-grid">{metrics}</div>'
            f"{_list(content.insights)}"
            "</div>"
        )

    title = document.key_message
    body = (
        _header(title, timestamp, total_records)
        + "".join(slides)
        + f'<div class="call-to-action">{_e(document.call_to_action or "Review findings and implement recommended improvements")}</div>'
    )
    return _page("SLA Performance Presentation", body)


def _agent_items(agents: Mapping[str, Any]) -> str:
    if not agents:
        return "<p>No agent columns were detected in the data.</p>"
    items = []
    for name, stats in sorted(agents.items()):
        items.append(
            f'<div class="item agent"><strong>{_e(name)}</strong>'
            f"<p>{_e(stats.get('total', 0))} tickets, "
            f"{_e(stats.get('responseViolations', 0))} response violations, "
            f"{_e(stats.get('resolutionViolations', 0))} resolution violations, "
            f"compliance {_e(_percent(stats.get('complianceRate', '0')))}</p></div>"
        )
    return "".join(items)


def _header(title: str, timestamp: str, total_records: int) -> str:
    return (
        f'<div class="header"><h1>{_e(title)}</h1>'
        f'<p class="subtitle">Generated: {_e(timestamp)}</p>'
        f'<p class="subtitle">Records Analyzed: {total_records:,}</p></div>'
    )


def _section(title: str, content: str) -> str:
    if not content:
        return ""
    return f'<div class="section"><h2>{_e(title)}</h2>{content}</div>'


def _list(items: Iterable[str]) -> str:
    entries = "".join(f"<li>{_e(item)}</li>" for item in items)
    return f"<ul>{entries}</ul>" if entries else ""


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>{_e(title)}</title>\n<style>{_BASE_STYLE}</style>\n</head>\n"
        f'<body>\n<div class="container">\n{body}\n</div>\n</body>\n</html>\n'
    )


def _percent(value: Any) -> str:
    text = str(value)
    return text if text.endswith("%") else f"{text}%"


def _e(value: Any) -> str:
    return escape(str(value), quote=True)
