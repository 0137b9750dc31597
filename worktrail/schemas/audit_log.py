"""Audit log query schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from worktrail.schemas.common import CamelModel


class AuditLogRead(CamelModel):
    id: int
    workspace_id: UUID
    user_id: int
    action: str
    target_type: str
    target_id: str | None
    created_at: datetime


class AuditLogPage(CamelModel):
    total: int
    limit: int
    offset: int
    logs: list[AuditLogRead]
