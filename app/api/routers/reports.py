"""
app/api/routers/reports.py

Report generation and download HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse

from app.api.errors import api_error
from app.schemas.reports import GenerateReportRequest, GenerateReportResponse
from app.services.report_service import NoReportDataError, ReportService, get_report_service
from app.services.report_storage import InvalidReportIdError, ReportNotFoundError
from llm_synthesis.adapter import LLMServiceError

router = APIRouter(prefix="/api", tags=["reports"])


@router.post("/generate-report", response_model=GenerateReportResponse)
def generate_report(
    request: GenerateReportRequest,
    report_service: ReportService = Depends(get_report_service),
) -> GenerateReportResponse:
    """
    Analyze the submitted records and store a rendered HTML report.
    """

    try:
        report = report_service.generate_report(
            request.data,
            report_type=request.report_type,
            file_name=request.file_name,
        )
    except NoReportDataError as exc:
        raise api_error(str(exc), "NO_DATA", status.HTTP_400_BAD_REQUEST) from exc
    except LLMServiceError as exc:
        raise api_error(exc.message, exc.code, exc.status) from exc

    return GenerateReportResponse(
        report_id=report.report_id,
        report_type=report.report_type,
        analysis=report.analysis,
        sla_analysis=report.sla_analysis,
        metadata=report.metadata,
        download_url=report.download_url,
        warnings=report.warnings,
    )


@router.get("/download-report/{report_id}", response_class=HTMLResponse)
def download_report(
    report_id: str,
    download: bool = Query(default=False, description="Send as an attachment instead of inline"),
    report_service: ReportService = Depends(get_report_service),
) -> HTMLResponse:
    """
    Return one stored report, inline or as a file download.
    """

    try:
        html = report_service.load_report(report_id)
    except InvalidReportIdError as exc:
        raise api_error(str(exc), "INVALID_REPORT_ID", status.HTTP_400_BAD_REQUEST) from exc
    except ReportNotFoundError as exc:
        raise api_error("Report not found.", "REPORT_NOT_FOUND", status.HTTP_404_NOT_FOUND) from exc

    if download:
        headers = {"Content-Disposition": f'attachment; filename="analysis-report-{report_id}.html"'}
    else:
        headers = {"Content-Disposition": "inline", "Cache-Control": "no-cache"}
    return HTMLResponse(content=html, headers=headers)
