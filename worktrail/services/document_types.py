"""Document type CRUD and field definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.orm import Session

from worktrail.errors import NotFoundError, ValidationError
from worktrail.models.document import Document
from worktrail.models.document_type import DocumentType
from worktrail.schemas.document_type import (
    DocumentTypeCreate,
    DocumentTypeUpdate,
    FieldDefinition,
)


@dataclass
class DocumentTypeDraft:
    """A document type that has not been persisted yet."""

    workspace_id: UUID
    name: str
    has_expiry: bool = False
    fields: list[dict] = field(default_factory=list)


def _field_to_dict(definition: FieldDefinition) -> dict:
    return {
        "fieldKey": definition.field_key.strip(),
        "label": definition.label.strip(),
        "fieldType": definition.field_type.value,
        "isRequired": definition.is_required,
    }


def validate_document_type_fields(name: str, fields: list[dict]) -> None:
    """Shared by creation and field additions. Field keys compare case-insensitively."""
    if not name or not name.strip():
        raise ValidationError("Document type name is required")
    seen: set[str] = set()
    for definition in fields:
        key = definition["fieldKey"]
        if not key:
            raise ValidationError("Field key is required")
        if key.lower() in seen:
            raise ValidationError(f"Field with key '{key}' already exists")
        seen.add(key.lower())


def build_document_type(workspace_id: UUID, data: DocumentTypeCreate) -> DocumentTypeDraft:
    draft = DocumentTypeDraft(
        workspace_id=workspace_id,
        name=data.name.strip(),
        has_expiry=data.has_expiry,
        fields=[_field_to_dict(f) for f in data.fields],
    )
    validate_document_type_fields(draft.name, draft.fields)
    return draft


def create_document_type(db: Session, workspace_id: UUID, data: DocumentTypeCreate) -> DocumentType:
    draft = build_document_type(workspace_id, data)
    doc_type = DocumentType(
        workspace_id=draft.workspace_id,
        name=draft.name,
        has_expiry=draft.has_expiry,
        fields=draft.fields,
    )
    db.add(doc_type)
    db.commit()
    db.refresh(doc_type)
    return doc_type


def list_document_types(db: Session, workspace_id: UUID) -> list[DocumentType]:
    return (
        db.query(DocumentType)
        .filter(DocumentType.workspace_id == workspace_id)
        .order_by(DocumentType.created_at.desc())
        .all()
    )


def get_document_type(db: Session, workspace_id: UUID, type_id: UUID) -> DocumentType:
    doc_type = (
        db.query(DocumentType)
        .filter(DocumentType.id == type_id, DocumentType.workspace_id == workspace_id)
        .first()
    )
    if doc_type is None:
        raise NotFoundError("Document type not found")
    return doc_type


def update_document_type(
    db: Session, workspace_id: UUID, type_id: UUID, data: DocumentTypeUpdate
) -> DocumentType:
    doc_type = get_document_type(db, workspace_id, type_id)
    if data.name is not None:
        doc_type.name = data.name.strip()
    if data.has_expiry is not None:
        doc_type.has_expiry = data.has_expiry
    db.commit()
    db.refresh(doc_type)
    return doc_type


def add_field(
    db: Session, workspace_id: UUID, type_id: UUID, definition: FieldDefinition
) -> DocumentType:
    doc_type = get_document_type(db, workspace_id, type_id)
    fields = [*(doc_type.fields or []), _field_to_dict(definition)]
    validate_document_type_fields(doc_type.name, fields)
    # Reassign so the JSON column is flagged dirty
    doc_type.fields = fields
    db.commit()
    db.refresh(doc_type)
    return doc_type


def delete_document_type(db: Session, workspace_id: UUID, type_id: UUID) -> None:
    doc_type = get_document_type(db, workspace_id, type_id)
    in_use = db.query(Document).filter(Document.document_type_id == doc_type.id).count()
    if in_use:
        raise ValidationError(f"Cannot delete: {in_use} document(s) use this type")
    db.delete(doc_type)
    db.commit()
