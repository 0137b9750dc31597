"""Document registration, listing, expiry tracking and deletion.

Documents are registered by metadata only; file bytes live outside this service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from worktrail.errors import NotFoundError, ValidationError
from worktrail.models.document import Document
from worktrail.models.document_type import DocumentType, FieldType
from worktrail.models.work_item_document import WorkItemDocument
from worktrail.schemas.document import DocumentCreate, DocumentRead, DocumentUpdate
from worktrail.services.document_types import get_document_type
from worktrail.services.lookups import EntityLookup


@dataclass
class DocumentDraft:
    workspace_id: UUID
    document_type_id: UUID
    file_name: str
    file_size: int
    uploaded_by: int
    entity_id: UUID | None = None
    mime_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    expiry_date: date | None = None


def _check_field_value(key: str, field_type: str, value: Any) -> None:
    if field_type == FieldType.NUMBER.value:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"Metadata field '{key}' must be a number")
    elif field_type == FieldType.DATE.value:
        try:
            date.fromisoformat(str(value))
        except ValueError:
            raise ValidationError(f"Metadata field '{key}' must be an ISO-8601 date") from None
    elif not isinstance(value, str):
        raise ValidationError(f"Metadata field '{key}' must be text")


def validate_document_fields(draft: DocumentDraft, doc_type: DocumentType) -> None:
    """Check the draft against its document type's field definitions."""
    if not draft.file_name.strip():
        raise ValidationError("File name is required")
    if draft.file_size <= 0:
        raise ValidationError("File size must be greater than zero")
    if draft.expiry_date is not None and not doc_type.has_expiry:
        raise ValidationError("This document type does not track expiry")

    for definition in doc_type.fields or []:
        key = definition["fieldKey"]
        value = draft.metadata.get(key)
        if value is None or value == "":
            if definition.get("isRequired"):
                raise ValidationError(f"Missing required metadata field '{key}'")
            continue
        _check_field_value(key, definition["fieldType"], value)


def to_read(document: Document, today: date, warning_days: int) -> DocumentRead:
    """Map a Document row to its response schema.

    ``metadata`` is read from ``metadata_`` since the declarative base owns
    the plain attribute name.
    """
    return DocumentRead(
        id=document.id,
        workspace_id=document.workspace_id,
        document_type_id=document.document_type_id,
        entity_id=document.entity_id,
        file_name=document.file_name,
        file_size=document.file_size,
        mime_type=document.mime_type,
        metadata=document.metadata_,
        expiry_date=document.expiry_date,
        expiry_status=document.expiry_status(today, warning_days),
        uploaded_by=document.uploaded_by,
        created_at=document.created_at,
    )


def register_document(
    db: Session,
    workspace_id: UUID,
    user_id: int,
    data: DocumentCreate,
    entities: EntityLookup,
) -> Document:
    doc_type = get_document_type(db, workspace_id, data.document_type_id)
    if data.entity_id is not None and entities.find_by_id(data.entity_id, workspace_id) is None:
        raise NotFoundError("Entity not found in this workspace")

    draft = DocumentDraft(
        workspace_id=workspace_id,
        document_type_id=doc_type.id,
        file_name=data.file_name.strip(),
        file_size=data.file_size,
        uploaded_by=user_id,
        entity_id=data.entity_id,
        mime_type=data.mime_type,
        metadata=dict(data.metadata),
        expiry_date=data.expiry_date,
    )
    validate_document_fields(draft, doc_type)

    document = Document(
        workspace_id=draft.workspace_id,
        document_type_id=draft.document_type_id,
        entity_id=draft.entity_id,
        file_name=draft.file_name,
        file_size=draft.file_size,
        mime_type=draft.mime_type,
        metadata_=draft.metadata,
        expiry_date=draft.expiry_date,
        uploaded_by=draft.uploaded_by,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


def update_document(
    db: Session,
    workspace_id: UUID,
    document_id: UUID,
    data: DocumentUpdate,
    entities: EntityLookup,
) -> Document:
    """Change entity link, metadata or expiry. Metadata is replaced as a whole."""
    changes = data.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("At least one field must be provided for update")

    document = get_document(db, workspace_id, document_id)
    if "entity_id" in changes and entities.find_by_id(data.entity_id, workspace_id) is None:
        raise NotFoundError("Entity not found in this workspace")

    draft = DocumentDraft(
        workspace_id=workspace_id,
        document_type_id=document.document_type_id,
        file_name=document.file_name,
        file_size=document.file_size,
        uploaded_by=document.uploaded_by,
        entity_id=changes.get("entity_id", document.entity_id),
        mime_type=document.mime_type,
        metadata=dict(changes.get("metadata", document.metadata_ or {})),
        expiry_date=changes.get("expiry_date", document.expiry_date),
    )
    doc_type = get_document_type(db, workspace_id, document.document_type_id)
    validate_document_fields(draft, doc_type)

    document.entity_id = draft.entity_id
    document.metadata_ = draft.metadata
    document.expiry_date = draft.expiry_date
    db.commit()
    db.refresh(document)
    return document


def list_documents(
    db: Session,
    workspace_id: UUID,
    *,
    entity_id: UUID | None = None,
    document_type_id: UUID | None = None,
) -> list[Document]:
    query = db.query(Document).filter(Document.workspace_id == workspace_id)
    if entity_id is not None:
        query = query.filter(Document.entity_id == entity_id)
    if document_type_id is not None:
        query = query.filter(Document.document_type_id == document_type_id)
    return query.order_by(Document.created_at.desc()).all()


def list_expiring_documents(
    db: Session, workspace_id: UUID, today: date, days: int
) -> list[Document]:
    """Documents whose expiry date falls between ``today`` and ``today + days``."""
    return (
        db.query(Document)
        .filter(
            Document.workspace_id == workspace_id,
            Document.expiry_date.is_not(None),
            Document.expiry_date >= today,
            Document.expiry_date <= today + timedelta(days=days),
        )
        .order_by(Document.expiry_date)
        .all()
    )


def get_document(db: Session, workspace_id: UUID, document_id: UUID) -> Document:
    document = (
        db.query(Document)
        .filter(Document.id == document_id, Document.workspace_id == workspace_id)
        .first()
    )
    if document is None:
        raise NotFoundError("Document not found")
    return document


def delete_document(db: Session, workspace_id: UUID, document_id: UUID) -> None:
    """Delete a document and every work item link pointing at it."""
    document = get_document(db, workspace_id, document_id)
    db.query(WorkItemDocument).filter(WorkItemDocument.document_id == document.id).delete(
        synchronize_session=False
    )
    db.delete(document)
    db.commit()
