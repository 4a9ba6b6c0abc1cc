"""SQLite-backed storage for credit report ingestion records."""

from __future__ import annotations

import json
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from credit_ingest.extraction.schema import ExtractedReport
from credit_ingest.settings import get_settings
from credit_ingest.util.ids import generate_upload_id


class ProcessingStatus(str, Enum):
    """Lifecycle of an ingestion record: uploaded -> processing -> processed | failed."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.PROCESSED, ProcessingStatus.FAILED)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class CreditReportStore:
    """Persist ingestion records, their extracted report, and the raw parsed tree."""

    def __init__(self, db_path: str | Path | None = None) -> None:
        settings = get_settings()
        resolved = Path(db_path) if db_path else Path(settings.storage.sqlite_path)
        if not resolved.is_absolute():
            resolved = (Path(settings.project_root) / resolved).resolve()
        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            fallback = Path(os.getenv("CREDIT_INGEST_RUNTIME__FALLBACK_DIR", "/tmp/credit_ingest/sqlite"))
            fallback = fallback / "credit_reports.db"
            fallback.parent.mkdir(parents=True, exist_ok=True)
            resolved = fallback
        self.db_path = resolved
        self._init_tables()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_tables(self) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS credit_reports (
                    report_id TEXT PRIMARY KEY,
                    upload_id TEXT NOT NULL UNIQUE,
                    file_name TEXT NOT NULL,
                    original_file_name TEXT NOT NULL,
                    uploaded_by TEXT NOT NULL,
                    file_size INTEGER,
                    mime_type TEXT,
                    checksum_sha256 TEXT,
                    processing_status TEXT NOT NULL,
                    processing_error TEXT,
                    pan TEXT,
                    name TEXT,
                    credit_score INTEGER,
                    extracted TEXT,
                    xml_data TEXT,
                    uploaded_at TEXT NOT NULL,
                    processed_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_credit_reports_uploaded_by ON credit_reports (uploaded_by)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_credit_reports_pan ON credit_reports (pan)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_credit_reports_status ON credit_reports (processing_status)"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_credit_reports_uploaded_at ON credit_reports (uploaded_at)")
            conn.commit()

    def _set_status(
        self,
        report_id: str,
        status: ProcessingStatus,
        *,
        expected: ProcessingStatus,
        **columns: Any,
    ) -> bool:
        """Move ``report_id`` to ``status`` only if it is currently ``expected``."""

        assignments = ["processing_status = ?", "updated_at = ?"]
        values: list[Any] = [status.value, _utcnow()]
        for column, value in columns.items():
            assignments.append(f"{column} = ?")
            values.append(value)
        values.extend([report_id, expected.value])
        with self._connect() as conn:
            result = conn.execute(
                f"UPDATE credit_reports SET {', '.join(assignments)} WHERE report_id = ? AND processing_status = ?",
                values,
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Ingestion records
    # ------------------------------------------------------------------
    def create_report(
        self,
        *,
        file_name: str,
        uploaded_by: str,
        file_size: int,
        mime_type: Optional[str],
        original_file_name: Optional[str] = None,
        checksum_sha256: Optional[str] = None,
    ) -> str:
        """Insert a new record in ``uploaded`` state and return its id."""

        report_id = str(uuid.uuid4())
        now = _utcnow()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO credit_reports (
                    report_id,
                    upload_id,
                    file_name,
                    original_file_name,
                    uploaded_by,
                    file_size,
                    mime_type,
                    checksum_sha256,
                    processing_status,
                    uploaded_at,
                    created_at,
                    updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    report_id,
                    generate_upload_id(),
                    file_name.strip(),
                    original_file_name or file_name,
                    uploaded_by,
                    file_size,
                    mime_type,
                    checksum_sha256,
                    ProcessingStatus.UPLOADED.value,
                    now,
                    now,
                    now,
                ),
            )
        return report_id

    def mark_processing(self, report_id: str) -> bool:
        """Claim an ``uploaded`` record for its single processing run.

        Returns False when the record is missing or has already left ``uploaded``.
        """

        return self._set_status(report_id, ProcessingStatus.PROCESSING, expected=ProcessingStatus.UPLOADED)

    def mark_processed(
        self,
        report_id: str,
        report: ExtractedReport,
        *,
        tree: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Store the extracted report and move the record to ``processed``."""

        details = report.basic_details
        return self._set_status(
            report_id,
            ProcessingStatus.PROCESSED,
            expected=ProcessingStatus.PROCESSING,
            extracted=report.model_dump_json(),
            xml_data=json.dumps(tree) if tree is not None else None,
            pan=details.pan,
            name=details.name,
            credit_score=details.credit_score,
            processing_error=None,
            processed_at=_utcnow(),
        )

    def mark_failed(self, report_id: str, message: str) -> bool:
        """Move a ``processing`` record to ``failed``; extracted data columns are left untouched."""

        return self._set_status(
            report_id,
            ProcessingStatus.FAILED,
            expected=ProcessingStatus.PROCESSING,
            processing_error=message,
        )

    # ------------------------------------------------------------------
    # Retrieval helpers
    # ------------------------------------------------------------------
    def get_report(self, report_id: str, *, include_tree: bool = False) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM credit_reports WHERE report_id = ?", (report_id,)).fetchone()
        if not row:
            return None
        record = dict(row)
        record["extracted"] = json.loads(record["extracted"]) if record.get("extracted") else None
        xml_data = record.pop("xml_data", None)
        if include_tree:
            record["xml_data"] = json.loads(xml_data) if xml_data else None
        return record

    def get_extracted_report(self, report_id: str) -> Optional[ExtractedReport]:
        with self._connect() as conn:
            row = conn.execute("SELECT extracted FROM credit_reports WHERE report_id = ?", (report_id,)).fetchone()
        if not row or not row["extracted"]:
            return None
        return ExtractedReport.model_validate_json(row["extracted"])


__all__ = ["CreditReportStore", "ProcessingStatus"]
