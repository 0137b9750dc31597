"""Workspace and membership API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from worktrail.api.deps import (
    get_audit_service,
    get_db,
    require_admin,
    require_auth,
    require_viewer,
)
from worktrail.api.idempotency import IdempotentRoute
from worktrail.models.audit_log import AuditAction
from worktrail.models.user import User
from worktrail.models.workspace_member import WorkspaceMember
from worktrail.schemas.common import MessageResponse
from worktrail.schemas.workspace import (
    MemberInvite,
    MemberRead,
    MemberRoleUpdate,
    MembershipRead,
    WorkspaceCreate,
    WorkspaceRead,
    WorkspaceWithRole,
)
from worktrail.services.audit_log import AuditLogService
from worktrail.services.workspaces import (
    create_workspace,
    invite_member,
    list_members,
    list_user_workspaces,
    remove_member,
    update_member_role,
)

router = APIRouter()
# Fingerprinted POSTs: a retried request replays the first response
idempotent_router = APIRouter(route_class=IdempotentRoute)

MEMBER_TARGET = "WorkspaceMember"


@idempotent_router.post("", response_model=WorkspaceRead, status_code=status.HTTP_201_CREATED)
def create_workspace_route(
    body: WorkspaceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
    audit: AuditLogService = Depends(get_audit_service),
) -> WorkspaceRead:
    workspace = create_workspace(db, user, body.name)
    audit.log(workspace.id, user.id, AuditAction.WORKSPACE_CREATED, "Workspace", workspace.id)
    return WorkspaceRead.model_validate(workspace)


@router.get("", response_model=list[WorkspaceWithRole])
def list_workspaces_route(
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> list[WorkspaceWithRole]:
    """Workspaces the caller belongs to, with the caller's role in each."""
    return [
        WorkspaceWithRole(
            id=workspace.id,
            tenant_id=workspace.tenant_id,
            name=workspace.name,
            created_at=workspace.created_at,
            updated_at=workspace.updated_at,
            role=role,
        )
        for workspace, role in list_user_workspaces(db, user.id)
    ]


@router.get("/{id}/members", response_model=list[MemberRead])
def list_members_route(
    id: UUID,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_viewer),
) -> list[MemberRead]:
    return [
        MemberRead(
            id=member.id,
            workspace_id=member.workspace_id,
            user_id=member.user_id,
            role=member.role,
            created_at=member.created_at,
            email=user.email,
            name=user.name,
        )
        for member, user in list_members(db, id)
    ]


@idempotent_router.post(
    "/{id}/members", response_model=MembershipRead, status_code=status.HTTP_201_CREATED
)
def invite_member_route(
    id: UUID,
    body: MemberInvite,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MembershipRead:
    """Add an existing user to the workspace."""
    membership = invite_member(
        db,
        id,
        body.role,
        user_id=body.invited_user_id,
        email=body.invited_email,
    )
    result = MembershipRead.model_validate(membership)
    audit.log(id, actor.user_id, AuditAction.WORKSPACE_MEMBER_INVITED, MEMBER_TARGET, membership.id)
    return result


@router.put("/{id}/members/{member_id}", response_model=MembershipRead)
def update_member_route(
    id: UUID,
    member_id: UUID,
    body: MemberRoleUpdate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MembershipRead:
    actor_id = actor.user_id
    membership = update_member_role(db, id, member_id, body.role)
    result = MembershipRead.model_validate(membership)
    audit.log(id, actor_id, AuditAction.WORKSPACE_MEMBER_ROLE_UPDATED, MEMBER_TARGET, member_id)
    return result


@router.delete("/{id}/members/{member_id}", response_model=MessageResponse)
def remove_member_route(
    id: UUID,
    member_id: UUID,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MessageResponse:
    actor_id = actor.user_id
    remove_member(db, id, member_id)
    audit.log(id, actor_id, AuditAction.WORKSPACE_MEMBER_REMOVED, MEMBER_TARGET, member_id)
    return MessageResponse(message="Member removed from workspace")
