"""
tests/test_api.py

HTTP-level tests for the upload, report and health endpoints.

Uses FastAPI's TestClient with dependency overrides so every test gets a
fresh upload service and a report service backed by ``tmp_path`` and the
mock adapter.
"""

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.csv_upload_service import CSVUploadService, get_csv_upload_service
from app.services.report_service import ReportService, get_report_service
from app.services.report_storage import ReportStorage
from llm_synthesis.adapter import BaseLLMAdapter, LLMServiceError, MockLLMAdapter

CSV_BODY = (
    b"Ticket ID,Agent,Created,First Response Status,Resolution Status\n"
    b"1,Alice,2024-01-07,Met,Met\n"
    b"2,Bob,2024-01-08,Violated,Met\n"
    b"3,Bob,2024-01-09,Met,Missed\n"
)


class _RateLimitedAdapter(BaseLLMAdapter):
    def generate(self, prompt: str) -> str:
        raise LLMServiceError.from_status(429)


@pytest.fixture()
def storage(tmp_path) -> ReportStorage:
    return ReportStorage(tmp_path / "reports")


@pytest.fixture()
def client(storage):
    app.dependency_overrides[get_csv_upload_service] = lambda: CSVUploadService(
        max_bytes=1024 * 1024,
        preview_rows=2,
    )
    app.dependency_overrides[get_report_service] = lambda: ReportService(
        adapter=MockLLMAdapter(),
        storage=storage,
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def _upload(client: TestClient, body: bytes = CSV_BODY, name: str = "tickets.csv", content_type: str = "text/csv"):
    return client.post("/api/upload", files={"csvFile": (name, body, content_type)})


def test_health(client) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert "timestamp" in payload


class TestUpload:
    def test_upload_returns_preview_and_descriptors(self, client) -> None:
        response = _upload(client)

        assert response.status_code == 200
        payload = response.json()
        assert payload["success"] is True
        assert payload["fileName"] == "tickets.csv"
        assert payload["totalRecords"] == 3
        assert len(payload["preview"]) == 2
        assert len(payload["fullData"]) == 3
        assert payload["fullData"][0]["Ticket ID"] == 1
        assert payload["dataStructure"]["hasUserColumns"] is True
        assert payload["dataQuality"]["cleanedCount"] == 3
        assert payload["errors"] == []

    def test_non_csv_is_rejected(self, client) -> None:
        response = _upload(client, body=b"hello", name="notes.txt", content_type="text/plain")
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] is True
        assert detail["code"] == "INVALID_FILE_TYPE"
        assert detail["status"] == 400
        assert "timestamp" in detail

    def test_csv_mime_type_without_extension_is_accepted(self, client) -> None:
        response = _upload(client, name="export", content_type="application/csv")
        assert response.status_code == 200

    def test_too_large(self, client) -> None:
        app.dependency_overrides[get_csv_upload_service] = lambda: CSVUploadService(
            max_bytes=16,
            preview_rows=5,
        )
        response = _upload(client)
        assert response.status_code == 413
        assert response.json()["detail"]["code"] == "FILE_TOO_LARGE"

    def test_unparseable_upload(self, client) -> None:
        response = _upload(client, body=b"\xff\xfe\xfa")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UPLOAD_ERROR"

    def test_header_only_upload_reports_errors(self, client) -> None:
        response = _upload(client, body=b"Agent,Status\n")
        assert response.status_code == 200
        payload = response.json()
        assert payload["success"] is False
        assert payload["errors"] == ["No data provided"]
        assert payload["dataStructure"] is None


class TestReports:
    def test_generate_then_download(self, client) -> None:
        rows = _upload(client).json()["fullData"]

        response = client.post(
            "/api/generate-report",
            json={"data": rows, "reportType": "executive", "fileName": "tickets.csv"},
        )
        assert response.status_code == 200
        payload = response.json()
        assert payload["success"] is True
        assert payload["reportType"] == "executive"
        assert payload["downloadUrl"] == f"/api/download-report/{payload['reportId']}"
        assert payload["slaAnalysis"]["firstResponseSLA"]["violations"] == 1
        assert payload["metadata"]["dataRows"] == 3

        inline = client.get(payload["downloadUrl"])
        assert inline.status_code == 200
        assert inline.headers["content-type"].startswith("text/html")
        assert inline.headers["cache-control"] == "no-cache"
        assert inline.headers["content-disposition"] == "inline"
        assert "<!DOCTYPE html>" in inline.text

        attachment = client.get(payload["downloadUrl"], params={"download": "true"})
        assert attachment.status_code == 200
        assert attachment.headers["content-disposition"] == (
            f'attachment; filename="analysis-report-{payload["reportId"]}.html"'
        )

    def test_raw_string_records_are_cleaned(self, client) -> None:
        rows = [{"Agent": "Alice", "First Response Status": "Met"}]
        response = client.post("/api/generate-report", json={"data": rows})
        assert response.status_code == 200
        assert response.json()["reportType"] == "detailed"

    @pytest.mark.parametrize("body", [{"data": []}, {}, {"data": "tickets"}, {"data": {"Agent": "A"}}])
    def test_missing_data(self, client, body) -> None:
        response = client.post("/api/generate-report", json=body)
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["message"] == "No valid data provided"
        assert detail["code"] == "NO_DATA"

    def test_provider_error_status_is_forwarded(self, client, storage) -> None:
        app.dependency_overrides[get_report_service] = lambda: ReportService(
            adapter=_RateLimitedAdapter(),
            storage=storage,
        )
        response = client.post("/api/generate-report", json={"data": [{"Agent": "A"}]})
        assert response.status_code == 429
        assert response.json()["detail"]["code"] == "RATE_LIMIT"

    def test_unknown_report(self, client) -> None:
        response = client.get(f"/api/download-report/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "REPORT_NOT_FOUND"

    def test_malformed_report_id(self, client) -> None:
        response = client.get("/api/download-report/not-a-report")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_REPORT_ID"
