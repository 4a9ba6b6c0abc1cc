"""Structured lifecycle logging and StatsD metrics for report ingestion."""

from __future__ import annotations

import json
import logging
import socket
import threading
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from credit_ingest.settings import Settings, get_settings

_LOGGER = logging.getLogger("credit_ingest.observability")
_STATSD_LOCK = threading.Lock()
_SHARED_STATSD: "StatsdClient | None" = None


class StatsdClient:
    """Fire-and-forget StatsD counters and timers over UDP."""

    def __init__(self, host: str, port: int, prefix: str = "") -> None:
        self._address = (host, port)
        self._prefix = prefix
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(self, metric: str, value: float, metric_type: str) -> None:
        name = f"{self._prefix}.{metric}" if self._prefix else metric
        amount = f"{value:.3f}".rstrip("0").rstrip(".") or "0"
        try:
            self._socket.sendto(f"{name}:{amount}|{metric_type}".encode("utf-8"), self._address)
        except OSError:
            _LOGGER.debug("StatsD send failed for %s", name, exc_info=True)


class Observability:
    """Emit one log line per ingestion lifecycle event and matching StatsD metrics.

    Events are JSON objects when ``observability.structured_logging`` is on and
    ``event | {...}`` text otherwise. Metrics are dropped when no StatsD host is
    configured.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        component: str | None = None,
        statsd: StatsdClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.component = component or "core"
        self._service_name = settings.observability.service_name
        self._structured = bool(settings.observability.structured_logging)
        self._statsd = statsd
        self._logger = logger or _LOGGER

    def emit_event(self, event: str, **fields: Any) -> None:
        payload = {
            "event": event,
            "service": self._service_name,
            "component": self.component,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **fields,
        }
        if self._structured:
            self._logger.info(json.dumps(payload, default=_json_default))
        else:
            self._logger.info("%s | %s", event, payload)

    def increment(self, metric: str, value: float = 1.0) -> None:
        if self._statsd:
            self._statsd.send(metric, value, "c")

    def record_timing(self, metric: str, value_ms: float) -> None:
        if self._statsd:
            self._statsd.send(metric, value_ms, "ms")

    def record_outcome(self, status: str, *, duration_ms: float, accounts: int = 0) -> None:
        """Count a finished processing run by terminal status and time it."""

        self.increment(f"ingestion.{status}")
        self.record_timing(f"ingestion.{status}.duration_ms", duration_ms)
        if accounts:
            self.increment("ingestion.accounts_extracted", accounts)


def get_observability(*, component: str | None = None, settings: Settings | None = None) -> Observability:
    resolved = settings or get_settings()
    return Observability(settings=resolved, component=component, statsd=_shared_statsd(resolved))


def reset_observability_cache() -> None:
    """Forget the shared StatsD client so the next lookup re-reads settings."""

    global _SHARED_STATSD
    with _STATSD_LOCK:
        _SHARED_STATSD = None


def _shared_statsd(settings: Settings) -> StatsdClient | None:
    global _SHARED_STATSD
    obs = settings.observability
    if not obs.statsd_host:
        return None
    with _STATSD_LOCK:
        if _SHARED_STATSD is None:
            _SHARED_STATSD = StatsdClient(obs.statsd_host, obs.statsd_port, obs.statsd_prefix)
        return _SHARED_STATSD


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


__all__ = ["Observability", "StatsdClient", "get_observability", "reset_observability_cache"]
