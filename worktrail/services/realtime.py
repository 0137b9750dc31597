"""In-process real-time hub: workspace rooms of WebSocket subscribers.

``emit`` is called from request handlers running in the threadpool. It hands
the broadcast to the event loop that owns the sockets and returns immediately;
delivery failures only drop the failing subscriber.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SECONDS = 5.0


class WorkspaceEventHub:
    def __init__(self) -> None:
        self._rooms: dict[str, set[WebSocket]] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    async def join(self, workspace_id: str, websocket: WebSocket) -> None:
        self._loop = asyncio.get_running_loop()
        self._rooms.setdefault(workspace_id, set()).add(websocket)
        logger.info("Subscriber joined workspace %s (%d)", workspace_id, self.count(workspace_id))

    def leave(self, workspace_id: str, websocket: WebSocket) -> None:
        room = self._rooms.get(workspace_id)
        if not room:
            return
        room.discard(websocket)
        if not room:
            self._rooms.pop(workspace_id, None)

    def count(self, workspace_id: str) -> int:
        return len(self._rooms.get(workspace_id, ()))

    def emit(self, workspace_id: str, event: str, payload: dict[str, Any]) -> None:
        """Schedule delivery of ``event`` to the workspace room. Never raises."""
        try:
            loop = self._loop
            if loop is None or loop.is_closed() or not self._rooms.get(workspace_id):
                return
            message = {"event": event, "payload": payload}
            asyncio.run_coroutine_threadsafe(self.broadcast(workspace_id, message), loop)
        except Exception:
            logger.exception("Failed to schedule %s for workspace %s", event, workspace_id)

    async def broadcast(self, workspace_id: str, message: dict[str, Any]) -> None:
        for websocket in list(self._rooms.get(workspace_id, ())):
            try:
                await asyncio.wait_for(websocket.send_json(message), timeout=SEND_TIMEOUT_SECONDS)
            except Exception:
                logger.warning("Dropping subscriber of workspace %s after send failure", workspace_id)
                self.leave(workspace_id, websocket)
