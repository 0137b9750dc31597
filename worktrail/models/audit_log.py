"""AuditLog model — append-only record of state changes in a workspace."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DateTime, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from worktrail.db.session import Base


class AuditAction(str, Enum):
    WORKSPACE_CREATED = "WORKSPACE_CREATED"
    WORKSPACE_MEMBER_INVITED = "WORKSPACE_MEMBER_INVITED"
    WORKSPACE_MEMBER_ROLE_UPDATED = "WORKSPACE_MEMBER_ROLE_UPDATED"
    WORKSPACE_MEMBER_REMOVED = "WORKSPACE_MEMBER_REMOVED"
    ENTITY_CREATED = "ENTITY_CREATED"
    ENTITY_UPDATED = "ENTITY_UPDATED"
    ENTITY_DELETED = "ENTITY_DELETED"
    DOCUMENT_TYPE_CREATED = "DOCUMENT_TYPE_CREATED"
    DOCUMENT_TYPE_UPDATED = "DOCUMENT_TYPE_UPDATED"
    DOCUMENT_TYPE_DELETED = "DOCUMENT_TYPE_DELETED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    DOCUMENT_UPDATED = "DOCUMENT_UPDATED"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"
    WORK_ITEM_TYPE_CREATED = "WORK_ITEM_TYPE_CREATED"
    WORK_ITEM_TYPE_DELETED = "WORK_ITEM_TYPE_DELETED"
    WORK_ITEM_CREATED = "WORK_ITEM_CREATED"
    WORK_ITEM_UPDATED = "WORK_ITEM_UPDATED"
    WORK_ITEM_STATUS_CHANGED = "WORK_ITEM_STATUS_CHANGED"
    WORK_ITEM_DELETED = "WORK_ITEM_DELETED"
    WORK_ITEM_DOCUMENT_LINKED = "WORK_ITEM_DOCUMENT_LINKED"
    WORK_ITEM_DOCUMENT_UNLINKED = "WORK_ITEM_DOCUMENT_UNLINKED"


class AuditLog(Base):
    """Audit entry. Written once by AuditLogService, never updated."""

    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("ix_audit_logs_workspace_created", "workspace_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # No FK: entries outlive the rows they describe
    workspace_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
