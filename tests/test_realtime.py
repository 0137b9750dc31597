"""Workspace event hub and the WebSocket subscription endpoint."""

from __future__ import annotations

import asyncio
import time

import pytest
from starlette.websockets import WebSocketDisconnect

from worktrail.services.audit_log import AuditLogService
from worktrail.services.realtime import WorkspaceEventHub


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict] = []
        self.received = asyncio.Event()

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(message)
        self.received.set()


class TestWorkspaceEventHub:
    def test_emit_without_subscribers_is_a_no_op(self):
        hub = WorkspaceEventHub()
        hub.emit("ws-1", "document:deleted", {"targetId": "d"})
        assert hub.count("ws-1") == 0

    @pytest.mark.asyncio
    async def test_broadcast_reaches_room_only(self):
        hub = WorkspaceEventHub()
        inside, outside = FakeWebSocket(), FakeWebSocket()
        await hub.join("ws-1", inside)
        await hub.join("ws-2", outside)

        await hub.broadcast("ws-1", {"event": "e", "payload": {}})

        assert inside.sent == [{"event": "e", "payload": {}}]
        assert outside.sent == []

    @pytest.mark.asyncio
    async def test_emit_from_worker_thread(self):
        hub = WorkspaceEventHub()
        socket = FakeWebSocket()
        await hub.join("ws-1", socket)

        await asyncio.to_thread(hub.emit, "ws-1", "work-item:status-changed", {"targetId": "w"})
        await asyncio.wait_for(socket.received.wait(), timeout=2)

        assert socket.sent == [
            {"event": "work-item:status-changed", "payload": {"targetId": "w"}}
        ]

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_dropped(self):
        hub = WorkspaceEventHub()
        healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
        await hub.join("ws-1", healthy)
        await hub.join("ws-1", broken)

        await hub.broadcast("ws-1", {"event": "e", "payload": {}})

        assert hub.count("ws-1") == 1
        assert len(healthy.sent) == 1

    @pytest.mark.asyncio
    async def test_leave_empties_room(self):
        hub = WorkspaceEventHub()
        socket = FakeWebSocket()
        await hub.join("ws-1", socket)
        hub.leave("ws-1", socket)
        hub.leave("ws-1", socket)
        assert hub.count("ws-1") == 0


def _ws_url(workspace_id) -> str:
    return f"/ws/workspaces/{workspace_id}"


class TestWebSocketEndpoint:
    def test_missing_token_is_rejected(self, client, owner):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(_ws_url(owner.workspace_id)):
                pass
        assert exc.value.code == 4401

    def test_invalid_token_is_rejected(self, client, owner):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(f"{_ws_url(owner.workspace_id)}?token=garbage"):
                pass
        assert exc.value.code == 4401

    def test_non_member_is_rejected(self, client, owner, make_actor):
        stranger = make_actor()
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(
                f"{_ws_url(owner.workspace_id)}?token={stranger.token}"
            ):
                pass
        assert exc.value.code == 4403

    def test_member_receives_workspace_events(self, app, client, owner, session_factory):
        hub = WorkspaceEventHub()
        app.state.event_hub = hub
        app.state.audit_service = AuditLogService(session_factory, hub)
        room = str(owner.workspace_id)

        with client.websocket_connect(f"{_ws_url(owner.workspace_id)}?token={owner.token}") as ws:
            deadline = time.monotonic() + 2
            while hub.count(room) == 0 and time.monotonic() < deadline:
                time.sleep(0.01)

            created = client.post(
                f"/api/workspaces/{owner.workspace_id}/work-item-types",
                json={"name": "Audit"},
                headers=owner.headers,
            )
            assert created.status_code == 201
            response = client.post(
                f"/api/workspaces/{owner.workspace_id}/document-types",
                json={"name": "Passport", "hasExpiry": True},
                headers=owner.headers,
            )
            assert response.status_code == 201
            document = client.post(
                f"/api/workspaces/{owner.workspace_id}/documents",
                json={
                    "documentTypeId": response.json()["id"],
                    "fileName": "passport.pdf",
                    "fileSize": 2048,
                },
                headers=owner.headers,
            )
            assert document.status_code == 201

            message = ws.receive_json()

        assert message == {
            "event": "document:uploaded",
            "payload": {
                "targetId": document.json()["id"],
                "targetType": "Document",
                "workspaceId": room,
            },
        }
