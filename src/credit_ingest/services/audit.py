"""Best-effort audit logging for credit report ingestion."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

LOGGER = logging.getLogger(__name__)

AUDIT_RESOURCE = "CreditReport"
ACTION_FILE_UPLOAD = "file_upload"
ACTION_FILE_PROCESS = "file_process"
ACTION_REPORT_VIEW = "report_view"


class AuditSink(Protocol):
    """Anything that can persist an audit entry (see :class:`credit_ingest.store.audit_store.AuditStore`)."""

    def log_action(
        self,
        *,
        action: str,
        actor: Optional[str],
        description: str,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Any:  # pragma: no cover - Protocol
        ...


def record_audit_event(
    sink: AuditSink | None,
    *,
    action: str,
    actor: Optional[str],
    description: str,
    resource_id: Optional[str],
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Emit an audit entry; failures are logged and never propagate to the caller."""

    if sink is None:
        return
    try:
        sink.log_action(
            action=action,
            actor=actor,
            description=description,
            resource=AUDIT_RESOURCE,
            resource_id=resource_id,
            metadata=metadata,
        )
    except Exception:
        LOGGER.exception("Failed to record %s audit entry for %s", action, resource_id)


__all__ = [
    "ACTION_FILE_PROCESS",
    "ACTION_FILE_UPLOAD",
    "ACTION_REPORT_VIEW",
    "AUDIT_RESOURCE",
    "AuditSink",
    "record_audit_event",
]
