"""API-level tests for report upload and status endpoints."""

from __future__ import annotations

import io
import sqlite3

import pytest
from fastapi import HTTPException, UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from credit_ingest.api import reports as reports_api
from credit_ingest.api.app import create_app
from credit_ingest.api.reports import get_service
from credit_ingest.services.ingestion import ReportIngestionService
from credit_ingest.settings import get_settings
from credit_ingest.store.audit_store import AuditStore
from credit_ingest.store.report_store import CreditReportStore

API_KEY = {"X-API-KEY": "dev-analyst-token"}
OTHER_KEY = {"X-API-KEY": "dev-admin-token"}

VALID_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<INProfileResponse>
  <CAIS_Account>
    <CAIS_Account_DETAILS>
      <Account_Number>ACC-1</Account_Number>
      <Account_Type>10</Account_Type>
      <Account_Status>11</Account_Status>
      <CAIS_Holder_Details><Income_TAX_PAN>ABCDE1234F</Income_TAX_PAN></CAIS_Holder_Details>
    </CAIS_Account_DETAILS>
  </CAIS_Account>
</INProfileResponse>"""


def _client(tmp_path) -> tuple[TestClient, ReportIngestionService]:
    db_path = tmp_path / "reports.db"
    service = ReportIngestionService(store=CreditReportStore(db_path=db_path), audit_sink=AuditStore(db_path=db_path))
    app = create_app()
    app.dependency_overrides[get_service] = lambda: service
    return TestClient(app), service


def test_upload_and_poll_status(tmp_path):
    client, _ = _client(tmp_path)

    files = {"file": ("bureau.xml", VALID_XML, "application/xml")}
    response = client.post("/upload/xml", files=files, headers=API_KEY)
    assert response.status_code == 202
    data = response.json()
    assert data["status"] == "uploaded"
    assert data["upload_id"].startswith("REP-")
    report_id = data["report_id"]

    status_resp = client.get(f"/upload/status/{report_id}", headers=API_KEY)
    assert status_resp.status_code == 200
    status = status_resp.json()
    assert status["status"] == "processed"
    assert status["file_name"] == "bureau.xml"
    assert status["error"] is None

    report_resp = client.get(f"/reports/{report_id}", headers=API_KEY)
    assert report_resp.status_code == 200
    report = report_resp.json()
    assert report["extracted"]["basic_details"]["pan"] == "ABCDE1234F"
    assert report["extracted"]["credit_accounts"][0]["account_type"] == "Credit Card"
    assert "xml_data" not in report


def test_malformed_upload_is_accepted_then_fails(tmp_path):
    client, _ = _client(tmp_path)

    files = {"file": ("broken.xml", b"<INProfileResponse><Open>", "text/xml")}
    response = client.post("/upload/xml", files=files, headers=API_KEY)
    assert response.status_code == 202

    status = client.get(f"/upload/status/{response.json()['report_id']}", headers=API_KEY).json()
    assert status["status"] == "failed"
    assert status["error"].startswith("Failed to parse XML:")


def test_upload_rejections(tmp_path, monkeypatch):
    client, _ = _client(tmp_path)

    missing = client.post("/upload/xml", headers=API_KEY)
    assert missing.status_code == 400
    assert missing.json()["detail"] == "No XML file uploaded"

    wrong_type = client.post("/upload/xml", files={"file": ("a.json", b"{}", "application/json")}, headers=API_KEY)
    assert wrong_type.status_code == 400
    assert wrong_type.json()["detail"] == "File must be XML format"

    settings = get_settings()
    small = settings.model_copy(
        update={"ingestion": settings.ingestion.model_copy(update={"max_upload_bytes": 16})}
    )
    monkeypatch.setattr(reports_api, "get_settings", lambda: small)
    too_large = client.post("/upload/xml", files={"file": ("big.xml", VALID_XML, "text/xml")}, headers=API_KEY)
    assert too_large.status_code == 413


def test_auth_and_ownership(tmp_path):
    client, _ = _client(tmp_path)

    files = {"file": ("bureau.xml", VALID_XML, "text/xml")}
    assert client.post("/upload/xml", files=files).status_code == 401
    assert client.post("/upload/xml", files=files, headers={"X-API-KEY": "nope"}).status_code == 403

    report_id = client.post("/upload/xml", files=files, headers=API_KEY).json()["report_id"]

    assert client.get(f"/upload/status/{report_id}", headers=OTHER_KEY).status_code == 404
    assert client.get(f"/reports/{report_id}", headers=OTHER_KEY).status_code == 404
    assert client.get("/upload/status/unknown", headers=API_KEY).status_code == 404


def _small_upload_limit(monkeypatch, limit):
    settings = get_settings()
    small = settings.model_copy(
        update={"ingestion": settings.ingestion.model_copy(update={"max_upload_bytes": limit})}
    )
    monkeypatch.setattr(reports_api, "get_settings", lambda: small)


class _CountingStream(io.BytesIO):
    def __init__(self, payload):
        super().__init__(payload)
        self.requested = []

    def read(self, size=-1):
        self.requested.append(size)
        return super().read(size)


def test_oversized_upload_is_rejected_without_full_read(monkeypatch):
    _small_upload_limit(monkeypatch, 16)
    stream = _CountingStream(b"<a>" + b"x" * 4096 + b"</a>")
    upload = UploadFile(stream, filename="big.xml", headers=Headers({"content-type": "text/xml"}))

    with pytest.raises(HTTPException) as excinfo:
        reports_api._read_upload(upload)

    assert excinfo.value.status_code == 413
    assert stream.requested == [17]


def test_wrong_type_is_rejected_before_reading():
    stream = _CountingStream(b"{}")
    upload = UploadFile(stream, filename="a.json", headers=Headers({"content-type": "application/json"}))

    with pytest.raises(HTTPException) as excinfo:
        reports_api._read_upload(upload)

    assert excinfo.value.status_code == 400
    assert stream.requested == []


def test_upload_at_limit_is_accepted(tmp_path, monkeypatch):
    client, service = _client(tmp_path)
    _small_upload_limit(monkeypatch, len(VALID_XML))

    response = client.post("/upload/xml", files={"file": ("bureau.xml", VALID_XML, "text/xml")}, headers=API_KEY)

    assert response.status_code == 202
    assert service.get_status(response.json()["report_id"], "analyst_1").status.value == "processed"


def test_oversized_upload_creates_no_record(tmp_path, monkeypatch):
    client, service = _client(tmp_path)
    _small_upload_limit(monkeypatch, 16)

    response = client.post("/upload/xml", files={"file": ("big.xml", VALID_XML, "text/xml")}, headers=API_KEY)

    assert response.status_code == 413
    with sqlite3.connect(service._store.db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM credit_reports").fetchone()[0] == 0


def test_report_section_reads(tmp_path):
    client, _ = _client(tmp_path)
    files = {"file": ("bureau.xml", VALID_XML, "application/xml")}
    report_id = client.post("/upload/xml", files=files, headers=API_KEY).json()["report_id"]

    basic = client.get(f"/reports/{report_id}/basic-details", headers=API_KEY)
    assert basic.status_code == 200
    body = basic.json()
    assert body["report_id"] == report_id
    assert body["upload_id"].startswith("REP-")
    assert body["file_name"] == "bureau.xml"
    assert body["uploaded_at"]
    assert body["basic_details"]["pan"] == "ABCDE1234F"
    assert body["basic_details"]["name"] == "N/A"

    summary = client.get(f"/reports/{report_id}/summary", headers=API_KEY).json()
    assert summary["report_summary"]["total_accounts"] == 0
    assert len(summary["report_summary"]) == 18

    accounts = client.get(f"/reports/{report_id}/credit-accounts", headers=API_KEY).json()
    assert accounts["total_accounts"] == 1
    assert accounts["credit_accounts"][0]["account_number"] == "ACC-1"
    assert accounts["credit_accounts"][0]["account_type"] == "Credit Card"


def test_report_section_reads_for_unprocessed_and_foreign_reports(tmp_path):
    client, _ = _client(tmp_path)

    failed_id = client.post(
        "/upload/xml", files={"file": ("broken.xml", b"<INProfileResponse><Open>", "text/xml")}, headers=API_KEY
    ).json()["report_id"]
    conflict = client.get(f"/reports/{failed_id}/summary", headers=API_KEY)
    assert conflict.status_code == 409
    assert "failed" in conflict.json()["detail"]

    report_id = client.post(
        "/upload/xml", files={"file": ("bureau.xml", VALID_XML, "text/xml")}, headers=API_KEY
    ).json()["report_id"]
    for path in ("basic-details", "summary", "credit-accounts"):
        assert client.get(f"/reports/{report_id}/{path}", headers=OTHER_KEY).status_code == 404
        assert client.get(f"/reports/unknown/{path}", headers=API_KEY).status_code == 404
        assert client.get(f"/reports/{report_id}/{path}").status_code == 401
