"""Ingestion progress fan-out keyed by upload id.

The ingestion pipeline pushes one :class:`ProcessingStatus` per step to a
single observer.  In the web app that observer is
:meth:`ProgressTracker.observer_for`, which records the latest status per
upload and forwards it to every listener registered for that upload (the
progress WebSocket, the status endpoint's snapshot):

    IngestionPipeline ──status──> ProgressTracker ──callback──> WebSocket
                                                  ──callback──> (others)

Listener errors are logged and skipped so a closed socket never stops the
pipeline.  Listeners may be sync or async.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from cachetools import TTLCache

from grantdesk.models.pipeline import ProcessingStatus
from grantdesk.utils.logging import get_logger

StatusListener = Callable[[str, ProcessingStatus], Any]

DEFAULT_MAX_TRACKED = 1000
DEFAULT_RETENTION_S = 3600.0


class ProgressTracker:
    """Stores the latest status per upload and notifies listeners.

    Statuses are kept for ``retention_s`` after their last update and at
    most ``max_tracked`` uploads are remembered (least recently used evicted first).
    """

    def __init__(
        self,
        max_tracked: int = DEFAULT_MAX_TRACKED,
        retention_s: float = DEFAULT_RETENTION_S,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._statuses: TTLCache[str, ProcessingStatus] = TTLCache(
            maxsize=max_tracked, ttl=retention_s, timer=timer
        )
        self._listeners: dict[str, list[StatusListener]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(self, upload_id: str, status: ProcessingStatus) -> None:
        """Record *status* for *upload_id* and notify its listeners."""
        self._statuses[upload_id] = status
        self._logger.debug(
            "progress_update",
            upload_id=upload_id,
            step=status.step.value,
            progress=status.progress,
        )
        await self._notify_listeners(upload_id, status)

    def observer_for(self, upload_id: str) -> Callable[[ProcessingStatus], Awaitable[None]]:
        """Return an ``on_status`` callback bound to *upload_id*."""

        async def _observer(status: ProcessingStatus) -> None:
            await self.update(upload_id, status)

        return _observer

    def register_listener(self, upload_id: str, callback: StatusListener) -> None:
        """Register *callback(upload_id, status)* for one upload."""
        listeners = self._listeners.setdefault(upload_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered",
                upload_id=upload_id,
                total_listeners=len(listeners),
            )

    def unregister_listener(self, upload_id: str, callback: StatusListener) -> None:
        listeners = self._listeners.get(upload_id, [])
        if callback in listeners:
            listeners.remove(callback)
            self._logger.debug(
                "listener_unregistered",
                upload_id=upload_id,
                remaining_listeners=len(listeners),
            )
        if not listeners:
            self._listeners.pop(upload_id, None)

    def get_status(self, upload_id: str) -> ProcessingStatus | None:
        """Latest status for *upload_id*, or ``None`` if never tracked or expired."""
        return self._statuses.get(upload_id)

    def is_tracked(self, upload_id: str) -> bool:
        return upload_id in self._statuses

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(self, upload_id: str, status: ProcessingStatus) -> None:
        for callback in list(self._listeners.get(upload_id, ())):
            try:
                result = callback(upload_id, status)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    upload_id=upload_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
