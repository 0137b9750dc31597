"""WebSocket subscription to a workspace's real-time events."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from worktrail.api.deps import AUTH_COOKIE
from worktrail.services.auth import user_id_from_token
from worktrail.services.workspaces import get_membership

logger = logging.getLogger(__name__)

router = APIRouter()

WS_CLOSE_UNAUTHORIZED = 4401
WS_CLOSE_FORBIDDEN = 4403


def _is_member(session_factory, workspace_id: UUID, user_id: int) -> bool:
    db = session_factory()
    try:
        return get_membership(db, workspace_id, user_id) is not None
    finally:
        db.close()


@router.websocket("/ws/workspaces/{workspaceId}")
async def workspace_events_ws(websocket: WebSocket, workspaceId: str) -> None:
    """Join the workspace room and forward ``{"event", "payload"}`` messages.

    Authenticates with the ``token`` query parameter (or the session cookie).
    """
    token = websocket.query_params.get("token") or websocket.cookies.get(AUTH_COOKIE)
    user_id = user_id_from_token(token) if token else None
    if user_id is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    try:
        workspace_id = UUID(workspaceId)
    except ValueError:
        await websocket.close(code=WS_CLOSE_FORBIDDEN)
        return

    state = websocket.app.state
    if not await run_in_threadpool(_is_member, state.session_factory, workspace_id, user_id):
        await websocket.close(code=WS_CLOSE_FORBIDDEN)
        return

    hub = state.event_hub
    room = str(workspace_id)
    await websocket.accept()
    await hub.join(room, websocket)
    try:
        while True:
            # Inbound frames are ignored; this only notices disconnects
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Subscriber left workspace %s", room)
    finally:
        hub.leave(room, websocket)
