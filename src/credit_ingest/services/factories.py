"""Factory helpers that instantiate core services based on configuration.

These helpers centralize how :mod:`credit_ingest.settings` values turn into
concrete stores, job runners, and the ingestion service.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from credit_ingest.services.ingestion import ReportIngestionService
from credit_ingest.services.ingestion_job_runner import IngestionJobRunner, ThreadPoolJobRunner
from credit_ingest.settings import get_settings
from credit_ingest.store.audit_store import AuditStore
from credit_ingest.store.report_store import CreditReportStore


def build_report_store(db_path: str | Path | None = None) -> CreditReportStore:
    """Return a :class:`CreditReportStore` at ``db_path`` or the configured SQLite path."""

    return CreditReportStore(db_path=db_path)


def build_audit_store(db_path: str | Path | None = None) -> AuditStore:
    """Return an :class:`AuditStore` sharing the configured SQLite database."""

    return AuditStore(db_path=db_path)


@lru_cache(maxsize=1)
def build_job_runner() -> IngestionJobRunner:
    """Return the process-wide background runner sized from ``ingestion.worker_threads``."""

    settings = get_settings()
    return ThreadPoolJobRunner(max_workers=settings.ingestion.worker_threads)


def build_ingestion_service(
    *,
    db_path: str | Path | None = None,
    job_runner: IngestionJobRunner | None = None,
) -> ReportIngestionService:
    """Wire a :class:`ReportIngestionService` from settings."""

    settings = get_settings()
    return ReportIngestionService(
        store=build_report_store(db_path),
        audit_sink=build_audit_store(db_path),
        job_runner=job_runner or build_job_runner(),
        retain_tree=settings.ingestion.retain_tree,
    )


__all__ = ["build_audit_store", "build_ingestion_service", "build_job_runner", "build_report_store"]
