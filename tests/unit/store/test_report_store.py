"""Unit tests for CreditReportStore."""

import re
import sqlite3

from credit_ingest.extraction.schema import BasicDetails, ExtractedReport
from credit_ingest.store.report_store import CreditReportStore, ProcessingStatus


def _create(store: CreditReportStore) -> str:
    return store.create_report(
        file_name="bureau.xml",
        uploaded_by="analyst_1",
        file_size=2048,
        mime_type="application/xml",
        checksum_sha256="abc123",
    )


def _report() -> ExtractedReport:
    return ExtractedReport(basic_details=BasicDetails(name="ANITA RAO", pan="abcde1234f", credit_score=720))


def test_table_initialization(tmp_path):
    db_path = tmp_path / "reports.db"
    CreditReportStore(db_path=db_path)

    with sqlite3.connect(db_path) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}

    assert "credit_reports" in tables


def test_create_report_starts_uploaded(tmp_path):
    store = CreditReportStore(db_path=tmp_path / "reports.db")
    report_id = _create(store)

    record = store.get_report(report_id)
    assert record is not None
    assert record["processing_status"] == ProcessingStatus.UPLOADED.value
    assert record["file_name"] == "bureau.xml"
    assert record["original_file_name"] == "bureau.xml"
    assert record["uploaded_by"] == "analyst_1"
    assert record["extracted"] is None
    assert record["processed_at"] is None
    assert "xml_data" not in record
    assert re.fullmatch(r"REP-[0-9A-Z]+-[0-9A-Z]{6}", record["upload_id"])


def test_processed_transition_persists_report_and_tree(tmp_path):
    store = CreditReportStore(db_path=tmp_path / "reports.db")
    report_id = _create(store)

    assert store.mark_processing(report_id) is True
    assert store.get_report(report_id)["processing_status"] == "processing"

    tree = {"INProfileResponse": {"SCORE": {"BureauScore": "720"}}}
    assert store.mark_processed(report_id, _report(), tree=tree) is True

    record = store.get_report(report_id, include_tree=True)
    assert record["processing_status"] == "processed"
    assert record["processed_at"] is not None
    assert record["pan"] == "ABCDE1234F"
    assert record["credit_score"] == 720
    assert record["extracted"]["basic_details"]["name"] == "ANITA RAO"
    assert record["xml_data"] == tree

    restored = store.get_extracted_report(report_id)
    assert restored == _report()


def test_failed_transition_keeps_extracted_empty(tmp_path):
    store = CreditReportStore(db_path=tmp_path / "reports.db")
    report_id = _create(store)

    store.mark_processing(report_id)
    assert store.mark_failed(report_id, "Failed to parse XML: syntax error") is True

    record = store.get_report(report_id, include_tree=True)
    assert record["processing_status"] == "failed"
    assert record["processing_error"] == "Failed to parse XML: syntax error"
    assert record["extracted"] is None
    assert record["xml_data"] is None
    assert store.get_extracted_report(report_id) is None


def test_unknown_report(tmp_path):
    store = CreditReportStore(db_path=tmp_path / "reports.db")

    assert store.get_report("missing") is None
    assert store.mark_processing("missing") is False
    assert store.mark_failed("missing", "boom") is False


def test_transitions_require_expected_source_state(tmp_path):
    store = CreditReportStore(db_path=tmp_path / "reports.db")
    report_id = _create(store)

    assert store.mark_processed(report_id, _report()) is False
    assert store.mark_failed(report_id, "too early") is False
    assert store.get_report(report_id)["processing_status"] == "uploaded"

    assert store.mark_processing(report_id) is True
    assert store.mark_processing(report_id) is False
    assert store.mark_processed(report_id, _report()) is True

    assert store.mark_failed(report_id, "late failure") is False
    assert store.mark_processing(report_id) is False
    record = store.get_report(report_id)
    assert record["processing_status"] == "processed"
    assert record["processing_error"] is None
    assert record["extracted"]["basic_details"]["pan"] == "ABCDE1234F"


def test_failed_record_cannot_be_marked_processed(tmp_path):
    store = CreditReportStore(db_path=tmp_path / "reports.db")
    report_id = _create(store)
    store.mark_processing(report_id)
    store.mark_failed(report_id, "Failed to parse XML: syntax error")

    assert store.mark_processed(report_id, _report()) is False
    record = store.get_report(report_id)
    assert record["processing_status"] == "failed"
    assert record["extracted"] is None


def test_terminal_statuses():
    assert ProcessingStatus.PROCESSED.is_terminal
    assert ProcessingStatus.FAILED.is_terminal
    assert not ProcessingStatus.UPLOADED.is_terminal
    assert not ProcessingStatus.PROCESSING.is_terminal
