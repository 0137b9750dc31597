"""Entity schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from worktrail.models.entity import EntityRole
from worktrail.schemas.common import CamelModel


class EntityCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    role: EntityRole


class EntityUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    role: EntityRole | None = None


class EntityRead(CamelModel):
    id: UUID
    workspace_id: UUID
    name: str
    role: EntityRole
    created_at: datetime
