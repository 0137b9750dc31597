"""Workspace creation, listing and membership management.

Role changes and removals go through the last-owner guard: the workspace's
memberships are locked for the rest of the transaction, and the mutation itself
is a conditional statement that only applies while another OWNER remains.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from worktrail.errors import NotFoundError, ValidationError
from worktrail.models.tenant import Tenant
from worktrail.models.user import User
from worktrail.models.workspace import Workspace
from worktrail.models.workspace_member import WorkspaceMember, WorkspaceRole
from worktrail.services.auth import normalize_email

logger = logging.getLogger(__name__)

LAST_OWNER_REMOVE_MESSAGE = "Cannot remove the last owner from the workspace"
LAST_OWNER_DEMOTE_MESSAGE = "Cannot demote the last owner. Please assign another owner first."


def parse_role(value: str) -> WorkspaceRole:
    try:
        return WorkspaceRole(value)
    except ValueError:
        allowed = ", ".join(r.value for r in WorkspaceRole)
        raise ValidationError(f"Invalid role. Must be one of: {allowed}") from None


def get_membership(db: Session, workspace_id: UUID, user_id: int) -> WorkspaceMember | None:
    """Membership of ``user_id`` in ``workspace_id``; one indexed lookup, no cache."""
    return (
        db.query(WorkspaceMember)
        .filter(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_id == user_id,
        )
        .first()
    )


def create_workspace(db: Session, user: User, name: str) -> Workspace:
    """Create a workspace in the caller's tenant with the caller as OWNER."""
    tenant_id = (
        db.query(Workspace.tenant_id)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(
            WorkspaceMember.user_id == user.id,
            WorkspaceMember.role == WorkspaceRole.OWNER.value,
        )
        .order_by(Workspace.created_at)
        .limit(1)
        .scalar()
    )
    if tenant_id is None:
        tenant = Tenant(name=f"{user.email}'s Tenant")
        db.add(tenant)
        db.flush()
        tenant_id = tenant.id

    workspace = Workspace(tenant_id=tenant_id, name=name.strip())
    db.add(workspace)
    db.flush()
    db.add(
        WorkspaceMember(
            workspace_id=workspace.id,
            user_id=user.id,
            role=WorkspaceRole.OWNER.value,
        )
    )
    db.commit()
    db.refresh(workspace)
    return workspace


def list_user_workspaces(db: Session, user_id: int) -> list[tuple[Workspace, str]]:
    """Workspaces the user belongs to, with the user's role in each."""
    rows = (
        db.query(Workspace, WorkspaceMember.role)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(WorkspaceMember.user_id == user_id)
        .order_by(Workspace.created_at)
        .all()
    )
    return [(workspace, role) for workspace, role in rows]


def list_members(db: Session, workspace_id: UUID) -> list[tuple[WorkspaceMember, User]]:
    rows = (
        db.query(WorkspaceMember, User)
        .join(User, User.id == WorkspaceMember.user_id)
        .filter(WorkspaceMember.workspace_id == workspace_id)
        .order_by(WorkspaceMember.created_at)
        .all()
    )
    return [(member, user) for member, user in rows]


def invite_member(
    db: Session,
    workspace_id: UUID,
    role: str,
    *,
    user_id: int | None = None,
    email: str | None = None,
) -> WorkspaceMember:
    """Add an existing user to the workspace with ``role``."""
    parsed_role = parse_role(role)
    if db.get(Workspace, workspace_id) is None:
        raise NotFoundError("Workspace not found")

    if user_id is not None:
        invited = db.get(User, user_id)
    else:
        invited = db.query(User).filter(User.email == normalize_email(email or "")).first()
    if invited is None:
        raise NotFoundError("User not found")

    if get_membership(db, workspace_id, invited.id) is not None:
        raise ValidationError("User is already a member of this workspace")

    membership = WorkspaceMember(
        workspace_id=workspace_id,
        user_id=invited.id,
        role=parsed_role.value,
    )
    db.add(membership)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent invite for the same user won the unique constraint
        db.rollback()
        raise ValidationError("User is already a member of this workspace") from None
    db.refresh(membership)
    return membership


def _lock_memberships(db: Session, workspace_id: UUID) -> list[WorkspaceMember]:
    """SELECT ... FOR UPDATE over every membership of the workspace."""
    return (
        db.query(WorkspaceMember)
        .filter(WorkspaceMember.workspace_id == workspace_id)
        .with_for_update()
        .all()
    )


def _owner_count(workspace_id: UUID):
    # Scalar subquery evaluated inside the guarded statement itself
    return (
        select(func.count(WorkspaceMember.id))
        .where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.role == WorkspaceRole.OWNER.value,
        )
        .scalar_subquery()
    )


def _find_member(members: list[WorkspaceMember], member_id: UUID) -> WorkspaceMember:
    for member in members:
        if member.id == member_id:
            return member
    raise NotFoundError("Workspace member not found")


def update_member_role(
    db: Session, workspace_id: UUID, member_id: UUID, role: str
) -> WorkspaceMember:
    """Change a member's role, refusing to demote the workspace's last OWNER."""
    new_role = parse_role(role)
    members = _lock_memberships(db, workspace_id)
    target = _find_member(members, member_id)

    stmt = update(WorkspaceMember).where(
        WorkspaceMember.id == target.id,
        WorkspaceMember.workspace_id == workspace_id,
    )
    demoting_owner = target.role == WorkspaceRole.OWNER.value and new_role != WorkspaceRole.OWNER
    if demoting_owner:
        owners = sum(1 for m in members if m.role == WorkspaceRole.OWNER.value)
        if owners <= 1:
            db.rollback()
            raise ValidationError(LAST_OWNER_DEMOTE_MESSAGE)
        stmt = stmt.where(_owner_count(workspace_id) > 1)

    result = db.execute(
        stmt.values(role=new_role.value).execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        if demoting_owner:
            raise ValidationError(LAST_OWNER_DEMOTE_MESSAGE)
        raise NotFoundError("Workspace member not found")
    db.commit()
    db.refresh(target)
    return target


def remove_member(db: Session, workspace_id: UUID, member_id: UUID) -> WorkspaceMember:
    """Delete a membership, refusing to remove the workspace's last OWNER.

    Returns the removed membership (detached, attributes loaded).
    """
    members = _lock_memberships(db, workspace_id)
    target = _find_member(members, member_id)

    stmt = delete(WorkspaceMember).where(
        WorkspaceMember.id == target.id,
        WorkspaceMember.workspace_id == workspace_id,
    )
    removing_owner = target.role == WorkspaceRole.OWNER.value
    if removing_owner:
        owners = sum(1 for m in members if m.role == WorkspaceRole.OWNER.value)
        if owners <= 1:
            db.rollback()
            raise ValidationError(LAST_OWNER_REMOVE_MESSAGE)
        stmt = stmt.where(_owner_count(workspace_id) > 1)

    result = db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount == 0:
        db.rollback()
        if removing_owner:
            raise ValidationError(LAST_OWNER_REMOVE_MESSAGE)
        raise NotFoundError("Workspace member not found")
    db.expunge(target)
    db.commit()
    logger.info("Removed member %s from workspace %s", member_id, workspace_id)
    return target
