"""Shared FastAPI dependencies for API routes: authentication and the role gate."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Header, Path, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from worktrail.db.session import get_db  # re-export
from worktrail.errors import ForbiddenError, UnauthorizedError
from worktrail.models.user import User
from worktrail.models.workspace_member import WorkspaceMember, WorkspaceRole
from worktrail.services.audit_log import AuditLogService
from worktrail.services.auth import get_user_from_token
from worktrail.services.lookups import SqlDocumentLookup, SqlEntityLookup
from worktrail.services.workspaces import get_membership

__all__ = [
    "AUTH_COOKIE",
    "get_audit_service",
    "get_current_user",
    "get_db",
    "get_document_lookup",
    "get_entity_lookup",
    "require_admin",
    "require_auth",
    "require_member",
    "require_owner",
    "require_role",
    "require_viewer",
    "token_from_request",
    "WorkspaceIdPath",
]

logger = logging.getLogger(__name__)

# Cookie name for browser sessions
AUTH_COOKIE = "access_token"


def _bearer(authorization: str | None) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer ") :]
    return None


def token_from_request(request: Request) -> str | None:
    """Bearer header first, then the session cookie."""
    return _bearer(request.headers.get("authorization")) or request.cookies.get(AUTH_COOKIE)


def get_current_user(
    db: Session = Depends(get_db),
    authorization: str | None = Header(None),
    access_token: str | None = Cookie(None),
) -> User | None:
    """Return the authenticated user or None.

    Checks (in order):
    1. Authorization: Bearer <token> header
    2. access_token cookie
    """
    token = _bearer(authorization) or access_token
    if token is None:
        return None
    return get_user_from_token(db, token)


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """Dependency that requires authentication (401 otherwise)."""
    if user is None:
        raise UnauthorizedError("Not authenticated")
    return user


# ── Role gate ────────────────────────────────────────────────────────


async def _resolve_workspace_id(request: Request) -> str | None:
    """Path ``workspaceId``, then path ``id``, then ``workspaceId`` in a JSON body."""
    params = request.path_params
    if params.get("workspaceId"):
        return str(params["workspaceId"])
    if params.get("id"):
        return str(params["id"])
    body = await request.body()
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("workspaceId"):
        return str(data["workspaceId"])
    return None


def require_role(*roles: WorkspaceRole) -> Callable:
    """Build a dependency admitting members whose role is in ``roles``.

    No hierarchy is implied: OWNER passes only if it is listed. The resolved
    membership is returned and its role stored on ``request.state.workspace_role``.
    """
    allowed = frozenset(roles)
    required = " or ".join(r.value for r in roles)

    async def gate(
        request: Request,
        user: User = Depends(require_auth),
        db: Session = Depends(get_db),
    ) -> WorkspaceMember:
        raw_id = await _resolve_workspace_id(request)
        if raw_id is None:
            raise ForbiddenError("Workspace ID not found in request")
        try:
            workspace_id = UUID(raw_id)
        except ValueError:
            raise ForbiddenError("You are not a member of this workspace") from None

        membership = await run_in_threadpool(get_membership, db, workspace_id, user.id)
        if membership is None:
            raise ForbiddenError("You are not a member of this workspace")
        role = WorkspaceRole(membership.role)
        if role not in allowed:
            raise ForbiddenError(f"Access denied. Required role: {required}. Your role: {role.value}")

        request.state.workspace_role = role
        request.state.workspace_member = membership
        return membership

    return gate


require_owner = require_role(WorkspaceRole.OWNER)
require_admin = require_role(WorkspaceRole.OWNER, WorkspaceRole.ADMIN)
require_member = require_role(WorkspaceRole.OWNER, WorkspaceRole.ADMIN, WorkspaceRole.MEMBER)
require_viewer = require_role(
    WorkspaceRole.OWNER, WorkspaceRole.ADMIN, WorkspaceRole.MEMBER, WorkspaceRole.VIEWER
)


# ── Collaborators held on app.state ──────────────────────────────────


def get_audit_service(request: Request) -> AuditLogService:
    return request.app.state.audit_service


def get_entity_lookup(db: Session = Depends(get_db)) -> SqlEntityLookup:
    return SqlEntityLookup(db)


def get_document_lookup(db: Session = Depends(get_db)) -> SqlDocumentLookup:
    return SqlDocumentLookup(db)


WorkspaceIdPath = Annotated[UUID, Path(alias="workspaceId", description="Workspace identifier")]
