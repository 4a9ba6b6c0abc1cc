"""SQLite audit trail for ingestion actions."""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from credit_ingest.settings import get_settings


class AuditStore:
    """Append-only log of upload, processing, and view actions."""

    def __init__(self, db_path: str | Path | None = None) -> None:
        settings = get_settings()
        resolved = Path(db_path) if db_path else Path(settings.storage.sqlite_path)
        if not resolved.is_absolute():
            resolved = (Path(settings.project_root) / resolved).resolve()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = resolved
        self._init_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS audit_logs (
                    audit_id TEXT PRIMARY KEY,
                    action TEXT NOT NULL,
                    actor TEXT,
                    description TEXT NOT NULL,
                    resource TEXT,
                    resource_id TEXT,
                    metadata TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_audit_logs_resource ON audit_logs (resource, resource_id)"
            )

    def log_action(
        self,
        *,
        action: str,
        actor: Optional[str],
        description: str,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Insert an audit entry and return its id."""

        audit_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO audit_logs
                    (audit_id, action, actor, description, resource, resource_id, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    audit_id,
                    action,
                    actor,
                    description,
                    resource,
                    resource_id,
                    json.dumps(metadata or {}, default=str),
                    now,
                ),
            )
        return audit_id

    def get_actions(self, resource_id: str) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM audit_logs WHERE resource_id = ? ORDER BY created_at ASC, rowid ASC",
                (resource_id,),
            ).fetchall()
        results: List[Dict[str, Any]] = []
        for row in rows:
            data = dict(row)
            data["metadata"] = json.loads(data.get("metadata") or "{}")
            results.append(data)
        return results


__all__ = ["AuditStore"]
