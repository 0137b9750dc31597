"""Document schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from worktrail.models.document import ExpiryStatus
from worktrail.schemas.common import CamelModel


class DocumentCreate(CamelModel):
    """Register a document by its metadata; file bytes are stored elsewhere."""

    document_type_id: UUID
    entity_id: UUID | None = None
    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., gt=0)
    mime_type: str | None = Field(None, max_length=255)
    metadata: dict[str, Any] = Field(default_factory=dict)
    expiry_date: date | None = None


class DocumentUpdate(CamelModel):
    """Change the entity link, metadata or expiry date. The file itself is immutable."""

    entity_id: UUID | None = None
    metadata: dict[str, Any] | None = None
    expiry_date: date | None = None


class DocumentRead(CamelModel):
    id: UUID
    workspace_id: UUID
    document_type_id: UUID
    entity_id: UUID | None
    file_name: str
    file_size: int
    mime_type: str | None
    metadata: dict[str, Any] | None
    expiry_date: date | None
    expiry_status: ExpiryStatus
    uploaded_by: int
    created_at: datetime
