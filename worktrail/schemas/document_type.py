"""Document type schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from worktrail.models.document_type import FieldType
from worktrail.schemas.common import CamelModel


class FieldDefinition(CamelModel):
    field_key: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=255)
    field_type: FieldType
    is_required: bool = False


class DocumentTypeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    has_expiry: bool = False
    fields: list[FieldDefinition] = Field(default_factory=list)


class DocumentTypeUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    has_expiry: bool | None = None


class DocumentTypeRead(CamelModel):
    id: UUID
    workspace_id: UUID
    name: str
    has_expiry: bool
    fields: list[FieldDefinition]
    created_at: datetime
