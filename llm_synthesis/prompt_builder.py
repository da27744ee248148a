"""Structured prompt builder for report generation."""

import json
from typing import Any, Dict, List, Optional

from llm_synthesis.schema import REPORT_SCHEMAS, resolve_report_type

_SYSTEM_INSTRUCTIONS = """\
You are a senior IT operations analyst writing an SLA performance report.

STRICT RULES:
- Use ONLY the computed statistics provided below. Do not invent numbers.
- Do NOT report 100% compliance unless the data shows zero violations.
- Return strictly valid JSON matching the schema defined below.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.
"""

_REPORT_BRIEFS = {
    "executive": (
        "Write an executive summary for business leadership: four headline "
        "metrics, the critical findings and prioritised recommendations."
    ),
    "detailed": (
        "Write a detailed operational report: overview, SLA metrics, "
        "performance against benchmarks (first response 95%, resolution 90%), "
        "problem areas and analyst insights."
    ),
    "presentation": (
        "Write a short slide deck for IT leadership: one slide per theme, "
        "each with a headline, highlighted metrics and supporting insights, "
        "plus one key message and a call to action."
    ),
}

_SECTION_TEMPLATE = """\
## {title}
```json
{data}
```
"""


class ReportPromptBuilder:
    """Builds a deterministic structured prompt for one report type.

    Embeds the data structure descriptor and the SLA analysis as JSON
    sections and instructs the model to answer with a JSON document
    matching the report type's schema.
    """

    def build_prompt(
        self,
        report_type: str,
        data_structure: Optional[Dict[str, Any]],
        sla_analysis: Optional[Dict[str, Any]],
        file_name: Optional[str] = None,
        sample_rows: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        """Build the full report prompt.

        Args:
            report_type: "executive", "detailed" or "presentation"; anything
                else is treated as "detailed".
            data_structure: Serialized data structure descriptor.
            sla_analysis: Serialized SLA analysis.
            file_name: Original upload name, shown as context only.
            sample_rows: A few cleaned records for the model to see real values.

        Returns:
            A fully formatted prompt string ready for LLM consumption.
        """
        resolved_type = resolve_report_type(report_type)
        schema = REPORT_SCHEMAS[resolved_type]
        schema_json = json.dumps(schema.model_json_schema(by_alias=True), indent=2)

        total_records = (data_structure or {}).get("totalRows", 0)
        sections = self._format_data_sections(
            data_structure=data_structure or {},
            sla_analysis=sla_analysis or {},
            sample_rows=sample_rows or [],
        )

        return (
            f"{_SYSTEM_INSTRUCTIONS}\n"
            f"# DATASET\n\n"
            f"File: {file_name or 'uploaded.csv'}\n"
            f"Records analyzed: {total_records}\n\n"
            f"# PROVIDED DATA\n\n{sections}\n"
            f"# OUTPUT SCHEMA\n\n"
            f"Your response MUST conform to this JSON schema:\n\n"
            f"```json\n{schema_json}\n```\n\n"
            f"# TASK\n\n"
            f"{_REPORT_BRIEFS[resolved_type]}"
        )

    def _format_data_sections(self, **data: Any) -> str:
        """Format each data dict as a labeled JSON section.

        Args:
            **data: Named data values to include in the prompt.

        Returns:
            Concatenated formatted sections.
        """
        parts = []
        for key, value in data.items():
            title = key.replace("_", " ").title()
            body = json.dumps(value, indent=2, default=str)
            parts.append(_SECTION_TEMPLATE.format(title=title, data=body))
        return "\n".join(parts)
