"""Unit tests for AuditStore."""

from credit_ingest.store.audit_store import AuditStore


def test_log_and_list_actions(tmp_path):
    store = AuditStore(db_path=tmp_path / "audit.db")

    first = store.log_action(
        action="file_upload",
        actor="analyst_1",
        description="User uploaded XML file: bureau.xml",
        resource="CreditReport",
        resource_id="report-1",
        metadata={"fileName": "bureau.xml", "fileSize": 10},
    )
    store.log_action(action="file_process", actor="analyst_1", description="processed", resource_id="report-1")
    store.log_action(action="file_upload", actor="analyst_2", description="other", resource_id="report-2")

    actions = store.get_actions("report-1")
    assert [entry["action"] for entry in actions] == ["file_upload", "file_process"]
    assert actions[0]["audit_id"] == first
    assert actions[0]["metadata"] == {"fileName": "bureau.xml", "fileSize": 10}
    assert actions[1]["metadata"] == {}
    assert store.get_actions("missing") == []
