"""Fire-and-forget execution of report processing runs."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Protocol

LOGGER = logging.getLogger(__name__)


class IngestionJobRunner(Protocol):
    """Protocol describing how a processing run is scheduled."""

    name: str

    def submit(self, func: Callable[..., Any], *args: Any) -> None:  # pragma: no cover - Protocol
        ...


def _log_unhandled(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        LOGGER.error("Background ingestion run raised", exc_info=(type(exc), exc, exc.__traceback__))


class ThreadPoolJobRunner:
    """Run each processing job on a shared worker thread pool without waiting for it."""

    name = "thread_pool"

    def __init__(self, *, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="credit-ingest")

    def submit(self, func: Callable[..., Any], *args: Any) -> Future:
        future = self._executor.submit(func, *args)
        future.add_done_callback(_log_unhandled)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class InlineJobRunner:
    """Run jobs synchronously in the caller's thread (CLI jobs and tests)."""

    name = "inline"

    def submit(self, func: Callable[..., Any], *args: Any) -> None:
        func(*args)


__all__ = ["IngestionJobRunner", "InlineJobRunner", "ThreadPoolJobRunner"]
