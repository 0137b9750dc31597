"""Workspace and membership schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from worktrail.models.workspace_member import WorkspaceRole
from worktrail.schemas.common import CamelModel


class WorkspaceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


class WorkspaceRead(CamelModel):
    id: UUID
    tenant_id: UUID
    name: str
    created_at: datetime
    updated_at: datetime


class WorkspaceWithRole(WorkspaceRead):
    """Workspace as listed for the current user, with their role in it."""

    role: WorkspaceRole


class MemberInvite(CamelModel):
    """Invite an existing user by id or by email."""

    invited_user_id: int | None = None
    invited_email: str | None = Field(None, max_length=255)
    role: str

    @model_validator(mode="after")
    def _require_invitee(self) -> MemberInvite:
        if self.invited_user_id is None and not self.invited_email:
            raise ValueError("invitedUserId or invitedEmail is required")
        return self


class MemberRoleUpdate(CamelModel):
    role: str


class MembershipRead(CamelModel):
    id: UUID
    workspace_id: UUID
    user_id: int
    role: WorkspaceRole
    created_at: datetime


class MemberRead(MembershipRead):
    """Membership joined with the member's user record."""

    email: str
    name: str | None = None
