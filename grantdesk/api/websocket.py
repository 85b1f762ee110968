"""WebSocket endpoint for live ingestion progress.

    client                               server
    ws = new WebSocket(url)   ──────>   accept(), register listener
                              <──────   current snapshot (if any)
                              <──────   {"upload_id", "step", "message", "progress"}  per step
    ws.close()                ──────>   unregister listener

The receive loop only keeps the connection open; pushes come from the
listener registered with :class:`ProgressTracker`.
"""

from __future__ import annotations

import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from grantdesk.models.pipeline import ProcessingStatus
from grantdesk.pipeline.progress_tracker import ProgressTracker
from grantdesk.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def status_message(upload_id: str, status: ProcessingStatus) -> dict:
    return {"upload_id": upload_id, **status.model_dump(mode="json")}


async def websocket_progress(websocket: WebSocket, upload_id: str) -> None:
    """Stream :class:`ProcessingStatus` updates for *upload_id* as JSON."""
    progress_tracker: ProgressTracker = websocket.app.state.progress_tracker

    await websocket.accept()
    _logger.info("websocket_connected", upload_id=upload_id)

    async def _on_progress(uid: str, status: ProcessingStatus) -> None:
        # The socket may close between a step and the push.
        with contextlib.suppress(Exception):
            await websocket.send_json(status_message(uid, status))

    progress_tracker.register_listener(upload_id, _on_progress)

    try:
        snapshot = progress_tracker.get_status(upload_id)
        if snapshot is not None:
            await websocket.send_json(status_message(upload_id, snapshot))

        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", upload_id=upload_id)

    finally:
        progress_tracker.unregister_listener(upload_id, _on_progress)
        _logger.debug("websocket_listener_cleaned_up", upload_id=upload_id)
