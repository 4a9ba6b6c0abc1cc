"""Ingestion pipeline orchestrating upload, extraction, and status tracking.

Each upload creates one ingestion record in ``uploaded`` state and schedules a
single background processing run. The run moves the record to ``processing``
before any parsing starts, then to ``processed`` (with the extracted report) or
``failed`` (with a human-readable error). This service is the only boundary
that turns parser and extractor exceptions into persisted state; callers learn
about failures by polling :meth:`ReportIngestionService.get_status`.
"""

from __future__ import annotations

import hashlib
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from credit_ingest.extraction import ExtractedReport, ExtractionError, extract
from credit_ingest.observability import Observability, get_observability
from credit_ingest.parsing import TreeParseError, parse_xml
from credit_ingest.services.audit import (
    ACTION_FILE_PROCESS,
    ACTION_FILE_UPLOAD,
    ACTION_REPORT_VIEW,
    AuditSink,
    record_audit_event,
)
from credit_ingest.services.ingestion_job_runner import IngestionJobRunner, InlineJobRunner
from credit_ingest.store.report_store import CreditReportStore, ProcessingStatus

LOGGER = logging.getLogger(__name__)

TreeParser = Callable[[bytes], Dict[str, Any]]
Extractor = Callable[[Dict[str, Any]], ExtractedReport]

REPORT_SECTIONS = ("basic_details", "report_summary", "credit_accounts")


class ReportNotReadyError(RuntimeError):
    """Raised when extracted data is requested before a report is processed."""

    def __init__(self, report_id: str, status: ProcessingStatus) -> None:
        super().__init__(f"Report {report_id} is {status.value}")
        self.report_id = report_id
        self.status = status


class IngestionStatus(BaseModel):
    """Pollable view of an ingestion record."""

    report_id: str
    upload_id: str
    status: ProcessingStatus
    file_name: str
    uploaded_at: datetime
    processed_at: Optional[datetime] = None
    error: Optional[str] = None


class ReportIngestionService:
    """Own the per-report processing state machine."""

    def __init__(
        self,
        *,
        store: CreditReportStore,
        audit_sink: AuditSink | None = None,
        job_runner: IngestionJobRunner | None = None,
        parser: TreeParser = parse_xml,
        extractor: Extractor = extract,
        retain_tree: bool = True,
        observability: Observability | None = None,
    ) -> None:
        self._store = store
        self._audit = audit_sink
        self._job_runner = job_runner or InlineJobRunner()
        self._parser = parser
        self._extractor = extractor
        self._retain_tree = retain_tree
        self._obs = observability or get_observability(component="ingestion")

    # ------------------------------------------------------------------
    # Upload acceptance
    # ------------------------------------------------------------------
    def create_ingestion(
        self,
        owner_id: str,
        filename: str,
        byte_size: int,
        mime_type: Optional[str],
        raw_bytes: bytes,
    ) -> str:
        """Durably create an ``uploaded`` record and return its id.

        The caller is expected to have validated the MIME type and size already.
        """

        report_id = self._store.create_report(
            file_name=filename,
            uploaded_by=owner_id,
            file_size=byte_size,
            mime_type=mime_type,
            checksum_sha256=hashlib.sha256(raw_bytes).hexdigest(),
        )
        record = self._store.get_report(report_id) or {}
        upload_id = record.get("upload_id")
        self._obs.emit_event(
            "ingestion.created",
            report_id=report_id,
            upload_id=upload_id,
            status=ProcessingStatus.UPLOADED.value,
            file_name=filename,
            file_size=byte_size,
        )
        self._obs.increment("ingestion.created")
        record_audit_event(
            self._audit,
            action=ACTION_FILE_UPLOAD,
            actor=owner_id,
            description=f"User uploaded XML file: {filename}",
            resource_id=report_id,
            metadata={"fileName": filename, "fileSize": byte_size, "reportId": upload_id},
        )
        return report_id

    def submit_upload(
        self,
        owner_id: str,
        filename: str,
        byte_size: int,
        mime_type: Optional[str],
        raw_bytes: bytes,
    ) -> str:
        """Create the ingestion record and schedule its processing run without waiting for it."""

        report_id = self.create_ingestion(owner_id, filename, byte_size, mime_type, raw_bytes)
        self._job_runner.submit(self.begin_processing, raw_bytes, report_id, owner_id)
        return report_id

    # ------------------------------------------------------------------
    # Processing run
    # ------------------------------------------------------------------
    def begin_processing(self, raw_bytes: bytes, report_id: str, owner_id: str) -> Optional[ProcessingStatus]:
        """Parse, extract, and persist one report; never raises.

        Only a record still in ``uploaded`` is processed; terminal records are
        never re-entered.

        Returns:
            The terminal status reached, or ``None`` when the record does not
            exist or has already been claimed by another run.
        """

        try:
            record = self._store.get_report(report_id)
            if not record:
                LOGGER.error("Report %s not found; nothing to process", report_id)
                return None
            current = ProcessingStatus(record["processing_status"])
            if current is not ProcessingStatus.UPLOADED:
                level = logging.WARNING if current.is_terminal else logging.INFO
                LOGGER.log(level, "Report %s is already %s; skipping processing run", report_id, current.value)
                return None
            if not self._store.mark_processing(report_id):
                LOGGER.info("Report %s was claimed by another processing run", report_id)
                return None
        except Exception:
            LOGGER.exception("Unable to start processing for report %s", report_id)
            return None

        file_name = record.get("file_name")
        started = time.perf_counter()
        self._obs.emit_event(
            "ingestion.processing",
            report_id=report_id,
            upload_id=record.get("upload_id"),
            file_name=file_name,
            status=ProcessingStatus.PROCESSING.value,
        )
        try:
            tree = self._parser(raw_bytes)
            report = self._extractor(tree)
            stored = self._store.mark_processed(report_id, report, tree=tree if self._retain_tree else None)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            if isinstance(exc, (TreeParseError, ExtractionError)):
                LOGGER.warning("Report %s failed processing: %s", report_id, message)
            else:
                LOGGER.exception("Report %s failed processing unexpectedly", report_id)
            self._record_failure(report_id, owner_id, file_name, message)
            self._obs.record_outcome(
                ProcessingStatus.FAILED.value, duration_ms=(time.perf_counter() - started) * 1000.0
            )
            return ProcessingStatus.FAILED

        if not stored:
            LOGGER.warning("Report %s left processing state before its result was stored", report_id)
            return None

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        account_count = len(report.credit_accounts)
        pan = report.basic_details.pan
        self._obs.emit_event(
            "ingestion.processed",
            report_id=report_id,
            status=ProcessingStatus.PROCESSED.value,
            accounts=account_count,
            addresses=len(report.addresses),
            credit_score=report.basic_details.credit_score,
            duration_ms=round(elapsed_ms, 2),
        )
        self._obs.record_outcome(ProcessingStatus.PROCESSED.value, duration_ms=elapsed_ms, accounts=account_count)
        record_audit_event(
            self._audit,
            action=ACTION_FILE_PROCESS,
            actor=owner_id,
            description=f"XML file processed successfully: {file_name}",
            resource_id=report_id,
            metadata={"reportId": record.get("upload_id"), "accountsProcessed": account_count, "pan": pan},
        )
        return ProcessingStatus.PROCESSED

    def _record_failure(self, report_id: str, owner_id: str, file_name: Optional[str], message: str) -> None:
        try:
            self._store.mark_failed(report_id, message)
        except Exception:
            LOGGER.exception("Unable to persist failure status for report %s", report_id)
        self._obs.emit_event(
            "ingestion.failed",
            report_id=report_id,
            status=ProcessingStatus.FAILED.value,
            file_name=file_name,
            error=message,
        )
        record_audit_event(
            self._audit,
            action=ACTION_FILE_PROCESS,
            actor=owner_id,
            description=f"XML file processing failed: {message}",
            resource_id=report_id,
            metadata={"error": message, "fileName": file_name},
        )

    # ------------------------------------------------------------------
    # Status + retrieval
    # ------------------------------------------------------------------
    def _owned_record(self, report_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        record = self._store.get_report(report_id)
        if not record or record.get("uploaded_by") != owner_id:
            return None
        return record

    def get_status(self, report_id: str, owner_id: str) -> Optional[IngestionStatus]:
        """Return the current status of an ingestion owned by ``owner_id``, else ``None``."""

        record = self._owned_record(report_id, owner_id)
        if record is None:
            return None
        return IngestionStatus(
            report_id=record["report_id"],
            upload_id=record["upload_id"],
            status=ProcessingStatus(record["processing_status"]),
            file_name=record["file_name"],
            uploaded_at=record["uploaded_at"],
            processed_at=record.get("processed_at"),
            error=record.get("processing_error"),
        )

    def get_report(self, report_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        """Return the full ingestion record (without the raw tree) and audit the view."""

        record = self._owned_record(report_id, owner_id)
        if record is None:
            return None
        record_audit_event(
            self._audit,
            action=ACTION_REPORT_VIEW,
            actor=owner_id,
            description=f"User viewed report: {record['upload_id']}",
            resource_id=report_id,
        )
        return record

    def get_report_section(self, report_id: str, owner_id: str, section: str) -> Optional[Dict[str, Any]]:
        """Return one extracted section of a processed report with its identifying fields.

        Returns ``None`` for a missing or foreign record, like :meth:`get_status`.

        Raises:
            ReportNotReadyError: The record has not reached ``processed``.
            KeyError: ``section`` is not one of :data:`REPORT_SECTIONS`.
        """

        if section not in REPORT_SECTIONS:
            raise KeyError(section)
        record = self._owned_record(report_id, owner_id)
        if record is None:
            return None
        current = ProcessingStatus(record["processing_status"])
        if current is not ProcessingStatus.PROCESSED or not record.get("extracted"):
            raise ReportNotReadyError(report_id, current)
        payload: Dict[str, Any] = {
            "report_id": record["report_id"],
            "upload_id": record["upload_id"],
            "file_name": record["file_name"],
        }
        if section == "basic_details":
            payload["uploaded_at"] = record["uploaded_at"]
        value = record["extracted"].get(section)
        payload[section] = value
        if section == "credit_accounts":
            payload["total_accounts"] = len(value or [])
        return payload


__all__ = ["REPORT_SECTIONS", "IngestionStatus", "ReportIngestionService", "ReportNotReadyError"]
