"""Document type API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from worktrail.api.deps import (
    WorkspaceIdPath,
    get_audit_service,
    get_db,
    require_admin,
    require_member,
)
from worktrail.api.idempotency import IdempotentRoute
from worktrail.models.audit_log import AuditAction
from worktrail.models.workspace_member import WorkspaceMember
from worktrail.schemas.common import MessageResponse
from worktrail.schemas.document_type import (
    DocumentTypeCreate,
    DocumentTypeRead,
    DocumentTypeUpdate,
    FieldDefinition,
)
from worktrail.services.audit_log import AuditLogService
from worktrail.services.document_types import (
    add_field,
    create_document_type,
    delete_document_type,
    get_document_type,
    list_document_types,
    update_document_type,
)

router = APIRouter()
idempotent_router = APIRouter(route_class=IdempotentRoute)

TARGET = "DocumentType"


@idempotent_router.post("", response_model=DocumentTypeRead, status_code=status.HTTP_201_CREATED)
def create_document_type_route(
    workspace_id: WorkspaceIdPath,
    body: DocumentTypeCreate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> DocumentTypeRead:
    doc_type = create_document_type(db, workspace_id, body)
    result = DocumentTypeRead.model_validate(doc_type)
    audit.log(workspace_id, actor.user_id, AuditAction.DOCUMENT_TYPE_CREATED, TARGET, doc_type.id)
    return result


@router.get("", response_model=list[DocumentTypeRead])
def list_document_types_route(
    workspace_id: WorkspaceIdPath,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[DocumentTypeRead]:
    return [DocumentTypeRead.model_validate(t) for t in list_document_types(db, workspace_id)]


@router.get("/{type_id}", response_model=DocumentTypeRead)
def get_document_type_route(
    workspace_id: WorkspaceIdPath,
    type_id: UUID,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> DocumentTypeRead:
    return DocumentTypeRead.model_validate(get_document_type(db, workspace_id, type_id))


@router.put("/{type_id}", response_model=DocumentTypeRead)
def update_document_type_route(
    workspace_id: WorkspaceIdPath,
    type_id: UUID,
    body: DocumentTypeUpdate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> DocumentTypeRead:
    doc_type = update_document_type(db, workspace_id, type_id, body)
    result = DocumentTypeRead.model_validate(doc_type)
    audit.log(workspace_id, actor.user_id, AuditAction.DOCUMENT_TYPE_UPDATED, TARGET, type_id)
    return result


@router.post(
    "/{type_id}/fields",
    response_model=DocumentTypeRead,
    status_code=status.HTTP_201_CREATED,
)
def add_field_route(
    workspace_id: WorkspaceIdPath,
    type_id: UUID,
    body: FieldDefinition,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> DocumentTypeRead:
    """Append a field definition; duplicate keys are rejected."""
    doc_type = add_field(db, workspace_id, type_id, body)
    result = DocumentTypeRead.model_validate(doc_type)
    audit.log(workspace_id, actor.user_id, AuditAction.DOCUMENT_TYPE_UPDATED, TARGET, type_id)
    return result


@router.delete("/{type_id}", response_model=MessageResponse)
def delete_document_type_route(
    workspace_id: WorkspaceIdPath,
    type_id: UUID,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MessageResponse:
    delete_document_type(db, workspace_id, type_id)
    audit.log(workspace_id, actor.user_id, AuditAction.DOCUMENT_TYPE_DELETED, TARGET, type_id)
    return MessageResponse(message="Document type deleted")
