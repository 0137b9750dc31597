"""DocumentType model — metadata schema that documents are registered against."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from worktrail.db.session import Base


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"


class DocumentType(Base):
    """Document type with its field definitions.

    ``fields`` holds a list of ``{"fieldKey", "label", "fieldType", "isRequired"}``
    dicts; keys are unique within a type.
    """

    __tablename__ = "document_types"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    has_expiry: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fields: Mapped[list[dict]] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
