"""
app/services/report_service.py

Report orchestration: clean, inspect and analyze the records, ask the
model for a structured report, render it to HTML and store it.

When the model's replies never validate, the report is built from the
computed statistics instead, so a download is always produced. Provider
failures (``LLMServiceError``) are not recovered here and propagate to
the API layer.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Sequence

from analysis.cleaner import clean_rows
from analysis.inspector import PREVIEW_SAMPLE_SIZE, DataStructure, inspect_rows
from analysis.sla import analyze_sla
from app.config import LLMSettings, get_llm_settings
from app.logging_utils import log_event
from app.services.report_storage import ReportStorage, get_report_storage
from llm_synthesis.adapter import (
    AnthropicLLMAdapter,
    BaseLLMAdapter,
    MockLLMAdapter,
    OpenAILLMAdapter,
)
from llm_synthesis.prompt_builder import ReportPromptBuilder
from llm_synthesis.retry import LLMRetryExhaustedError, generate_with_retry
from llm_synthesis.schema import REPORT_SCHEMAS, ReportDocument, resolve_report_type
from reporting.html_templates import render_report

logger = logging.getLogger(__name__)


class NoReportDataError(ValueError):
    """
    Raised when the request carries no usable records.
    """


@dataclass(frozen=True)
class GeneratedReport:
    """
    One stored report together with the data it was built from.
    """

    report_id: str
    report_type: str
    analysis: dict[str, Any]
    sla_analysis: dict[str, Any]
    metadata: dict[str, Any]
    used_fallback: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def download_url(self) -> str:
        return f"/api/download-report/{self.report_id}"


def build_report_metadata(
    *,
    report_id: str,
    report_type: str,
    structure: DataStructure,
    generated_at: datetime,
) -> dict[str, Any]:
    return {
        "id": report_id,
        "type": report_type,
        "generatedAt": generated_at.isoformat(),
        "dataRows": structure.total_rows,
        "dataColumns": len(structure.columns),
        "capabilities": {
            "timeAnalysis": structure.has_date_columns,
            "userAnalysis": structure.has_user_columns,
            "statusAnalysis": structure.has_status_columns,
        },
    }


class ReportService:
    """
    Coordinates the analysis pipeline, the model call and report storage.
    """

    def __init__(
        self,
        *,
        adapter: BaseLLMAdapter,
        storage: ReportStorage,
        prompt_builder: ReportPromptBuilder | None = None,
        max_retries: int = 2,
    ) -> None:
        self._adapter = adapter
        self._storage = storage
        self._prompt_builder = prompt_builder or ReportPromptBuilder()
        self._max_retries = max(0, max_retries)

    def generate_report(
        self,
        rows: Any,
        report_type: str | None = None,
        file_name: str | None = None,
    ) -> GeneratedReport:
        """
        Produce and store one HTML report for ``rows``.

        Raises:
            NoReportDataError: ``rows`` is empty, not a list, or nothing
                survives cleaning.
            LLMServiceError: The model provider rejected or failed the call.
        """

        if not isinstance(rows, Sequence) or isinstance(rows, (str, bytes)) or not rows:
            raise NoReportDataError("No valid data provided")

        resolved_type = resolve_report_type(report_type)
        cleaning = clean_rows(list(rows))
        structure = inspect_rows(cleaning.data)
        if structure is None:
            raise NoReportDataError("No valid data provided")

        generated_at = datetime.now(timezone.utc)
        sla = analyze_sla(cleaning.data, now=generated_at)
        if sla is None:
            raise NoReportDataError("No valid data provided")
        sla_dict = sla.to_dict()
        structure_dict = structure.to_dict()

        document, used_fallback = self._synthesize(
            report_type=resolved_type,
            structure=structure_dict,
            sla=sla_dict,
            sample_rows=cleaning.data[:PREVIEW_SAMPLE_SIZE],
            file_name=file_name,
        )

        report_id = str(uuid.uuid4())
        html = render_report(
            resolved_type,
            document,
            sla_dict,
            structure.total_rows,
            generated_at=generated_at,
        )
        self._storage.save(report_id, html)

        metadata = build_report_metadata(
            report_id=report_id,
            report_type=resolved_type,
            structure=structure,
            generated_at=generated_at,
        )

        log_event(
            logger,
            logging.INFO,
            "report_generated",
            report_id=report_id,
            report_type=resolved_type,
            file_name=file_name,
            rows=structure.total_rows,
            columns=len(structure.columns),
            used_fallback=used_fallback,
        )

        return GeneratedReport(
            report_id=report_id,
            report_type=resolved_type,
            analysis=document.model_dump(by_alias=True),
            sla_analysis=sla_dict,
            metadata=metadata,
            used_fallback=used_fallback,
            warnings=list(cleaning.warnings),
        )

    def load_report(self, report_id: str) -> str:
        return self._storage.load(report_id)

    def _synthesize(
        self,
        *,
        report_type: str,
        structure: dict[str, Any],
        sla: dict[str, Any],
        sample_rows: list[dict[str, Any]],
        file_name: str | None,
    ) -> tuple[ReportDocument, bool]:
        schema = REPORT_SCHEMAS[report_type]
        prompt = self._prompt_builder.build_prompt(
            report_type,
            structure,
            sla,
            file_name=file_name,
            sample_rows=sample_rows,
        )

        try:
            return generate_with_retry(self._adapter, prompt, schema, self._max_retries), False
        except LLMRetryExhaustedError as exc:
            logger.warning(
                "Model output unusable after %d attempt(s); building %s report from statistics",
                exc.attempts,
                report_type,
            )

        return schema.from_statistics(sla, structure["totalRows"]), True


def build_adapter(settings: LLMSettings) -> BaseLLMAdapter:
    """
    Instantiate the adapter named by ``settings.adapter``.
    """

    if settings.adapter == "mock":
        return MockLLMAdapter()
    if settings.adapter == "openai":
        return OpenAILLMAdapter(
            model=settings.model,
            max_tokens=settings.max_tokens,
            api_key=settings.api_key,
            base_url=settings.base_url,
        )
    return AnthropicLLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
    )


@lru_cache(maxsize=1)
def get_report_service() -> ReportService:
    """
    Return a cached report service configured from environment settings.
    """

    settings = get_llm_settings()
    return ReportService(
        adapter=build_adapter(settings),
        storage=get_report_storage(),
        max_retries=settings.max_retries,
    )
