"""Role gate: workspace resolution, membership lookup and explicit allow-sets."""

from __future__ import annotations

import uuid

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from worktrail.api.deps import (
    get_db,
    require_member,
    require_owner,
    require_role,
    require_viewer,
)
from worktrail.errors import register_exception_handlers
from worktrail.models import WorkspaceRole


@pytest.fixture
def gate_client(session_factory) -> TestClient:
    """Minimal app exposing the gate through each resolution path."""
    mini = FastAPI()
    register_exception_handlers(mini)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    mini.dependency_overrides[get_db] = override_get_db

    @mini.get("/by-workspace-id/{workspaceId}")
    def by_workspace_id(request: Request, member=Depends(require_viewer)):
        return {"role": request.state.workspace_role.value, "userId": member.user_id}

    @mini.get("/by-id/{id}")
    def by_id(request: Request, _member=Depends(require_viewer)):
        return {"role": request.state.workspace_role.value}

    @mini.post("/by-body")
    def by_body(request: Request, _member=Depends(require_member)):
        return {"role": request.state.workspace_role.value}

    @mini.get("/owner-only/{workspaceId}")
    def owner_only(_member=Depends(require_owner)):
        return {"ok": True}

    @mini.get("/admin-only/{workspaceId}")
    def admin_only(_member=Depends(require_role(WorkspaceRole.ADMIN))):
        return {"ok": True}

    return TestClient(mini)


class TestWorkspaceResolution:
    def test_path_workspace_id(self, gate_client, owner):
        response = gate_client.get(f"/by-workspace-id/{owner.workspace_id}", headers=owner.headers)
        assert response.status_code == 200
        assert response.json() == {"role": "OWNER", "userId": owner.user_id}

    def test_path_id(self, gate_client, owner):
        response = gate_client.get(f"/by-id/{owner.workspace_id}", headers=owner.headers)
        assert response.status_code == 200
        assert response.json() == {"role": "OWNER"}

    def test_body_workspace_id(self, gate_client, owner):
        response = gate_client.post(
            "/by-body", json={"workspaceId": str(owner.workspace_id)}, headers=owner.headers
        )
        assert response.status_code == 200
        assert response.json() == {"role": "OWNER"}

    def test_missing_workspace_id_is_forbidden(self, gate_client, owner):
        response = gate_client.post("/by-body", json={"name": "x"}, headers=owner.headers)
        assert response.status_code == 403
        assert response.json() == {
            "detail": "Workspace ID not found in request",
            "error": "forbidden",
        }

    def test_unauthenticated_is_401(self, gate_client, owner):
        response = gate_client.get(f"/by-workspace-id/{owner.workspace_id}")
        assert response.status_code == 401


class TestAllowSets:
    @pytest.mark.parametrize(
        "role,expected",
        [
            (WorkspaceRole.OWNER, 200),
            (WorkspaceRole.ADMIN, 403),
            (WorkspaceRole.MEMBER, 403),
            (WorkspaceRole.VIEWER, 403),
        ],
    )
    def test_owner_only(self, gate_client, owner, make_actor, add_member, role, expected):
        actor = make_actor()
        add_member(owner.workspace_id, actor, role)
        response = gate_client.get(f"/owner-only/{owner.workspace_id}", headers=actor.headers)
        assert response.status_code == expected

    def test_no_implicit_hierarchy(self, gate_client, owner):
        """OWNER does not satisfy an allow-set that lists only ADMIN."""
        response = gate_client.get(f"/admin-only/{owner.workspace_id}", headers=owner.headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Access denied. Required role: ADMIN. Your role: OWNER"


# ---------------------------------------------------------------------------
# Through the real API
# ---------------------------------------------------------------------------


def _gated_requests(workspace_id: uuid.UUID) -> list[tuple[str, str, dict | None]]:
    ws = f"/api/workspaces/{workspace_id}"
    other = uuid.uuid4()
    return [
        ("GET", f"{ws}/members", None),
        ("POST", f"{ws}/members", {"invitedUserId": 1, "role": "MEMBER"}),
        ("PUT", f"{ws}/members/{other}", {"role": "ADMIN"}),
        ("DELETE", f"{ws}/members/{other}", None),
        ("GET", f"{ws}/entities", None),
        ("POST", f"{ws}/entities", {"name": "X", "role": "VENDOR"}),
        ("DELETE", f"{ws}/entities/{other}", None),
        ("GET", f"{ws}/document-types", None),
        ("DELETE", f"{ws}/document-types/{other}", None),
        ("GET", f"{ws}/documents", None),
        ("GET", f"{ws}/work-items", None),
        ("PATCH", f"{ws}/work-items/{other}/status", {"status": "ACTIVE"}),
        ("POST", f"{ws}/work-items/{other}/documents", {"documentId": str(other)}),
        ("GET", f"{ws}/audit-logs", None),
    ]


def test_non_member_is_forbidden_everywhere(client, owner, make_actor):
    outsider = make_actor("outsider@example.com")
    for method, path, body in _gated_requests(owner.workspace_id):
        response = client.request(method, path, json=body, headers=outsider.headers)
        assert response.status_code == 403, (method, path, response.text)
        assert response.json() == {
            "detail": "You are not a member of this workspace",
            "error": "forbidden",
        }


def test_unknown_workspace_is_forbidden(client, owner):
    response = client.get(f"/api/workspaces/{uuid.uuid4()}/work-items", headers=owner.headers)
    assert response.status_code == 403


def test_member_cannot_delete_document_type(client, owner, make_actor, add_member, document_type):
    member = make_actor("member@example.com")
    add_member(owner.workspace_id, member, WorkspaceRole.MEMBER)

    response = client.delete(
        f"/api/workspaces/{owner.workspace_id}/document-types/{document_type.id}",
        headers=member.headers,
    )
    assert response.status_code == 403
    assert response.json() == {
        "detail": "Access denied. Required role: OWNER or ADMIN. Your role: MEMBER",
        "error": "forbidden",
    }


def test_viewer_can_list_members_but_not_create_entities(client, owner, make_actor, add_member):
    viewer = make_actor("viewer@example.com")
    add_member(owner.workspace_id, viewer, WorkspaceRole.VIEWER)

    listed = client.get(f"/api/workspaces/{owner.workspace_id}/members", headers=viewer.headers)
    assert listed.status_code == 200
    assert {m["role"] for m in listed.json()} == {"OWNER", "VIEWER"}

    created = client.post(
        f"/api/workspaces/{owner.workspace_id}/entities",
        json={"name": "Vendor", "role": "VENDOR"},
        headers=viewer.headers,
    )
    assert created.status_code == 403
    assert created.json()["detail"].endswith("Your role: VIEWER")
