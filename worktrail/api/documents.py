"""Document API routes (metadata registration; no file storage)."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from worktrail.api.deps import (
    WorkspaceIdPath,
    get_audit_service,
    get_db,
    get_entity_lookup,
    require_admin,
    require_member,
)
from worktrail.api.idempotency import IdempotentRoute
from worktrail.config import get_settings
from worktrail.models.audit_log import AuditAction
from worktrail.models.workspace_member import WorkspaceMember
from worktrail.schemas.common import MessageResponse
from worktrail.schemas.document import DocumentCreate, DocumentRead, DocumentUpdate
from worktrail.services.audit_log import AuditLogService
from worktrail.services.documents import (
    delete_document,
    get_document,
    list_documents,
    list_expiring_documents,
    register_document,
    to_read,
    update_document,
)
from worktrail.services.lookups import EntityLookup

router = APIRouter()
idempotent_router = APIRouter(route_class=IdempotentRoute)

TARGET = "Document"


def _today():
    return datetime.now(UTC).date()


@idempotent_router.post("", response_model=DocumentRead, status_code=status.HTTP_201_CREATED)
def register_document_route(
    workspace_id: WorkspaceIdPath,
    body: DocumentCreate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    entities: EntityLookup = Depends(get_entity_lookup),
    audit: AuditLogService = Depends(get_audit_service),
) -> DocumentRead:
    """Register a document against a document type in this workspace."""
    actor_id = actor.user_id
    document = register_document(db, workspace_id, actor_id, body, entities)
    result = to_read(document, _today(), get_settings().expiring_documents_days)
    audit.log(workspace_id, actor_id, AuditAction.DOCUMENT_UPLOADED, TARGET, document.id)
    return result


@router.get("", response_model=list[DocumentRead])
def list_documents_route(
    workspace_id: WorkspaceIdPath,
    entity_id: UUID | None = Query(None, alias="entityId"),
    document_type_id: UUID | None = Query(None, alias="documentTypeId"),
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[DocumentRead]:
    today = _today()
    days = get_settings().expiring_documents_days
    documents = list_documents(
        db, workspace_id, entity_id=entity_id, document_type_id=document_type_id
    )
    return [to_read(d, today, days) for d in documents]


@router.get("/expiring", response_model=list[DocumentRead])
def list_expiring_route(
    workspace_id: WorkspaceIdPath,
    days: int | None = Query(None, ge=1, le=3650, description="Look-ahead window in days"),
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[DocumentRead]:
    """Documents expiring within the window (default EXPIRING_DOCUMENTS_DAYS)."""
    today = _today()
    warning_days = get_settings().expiring_documents_days
    window = days if days is not None else warning_days
    return [
        to_read(d, today, warning_days)
        for d in list_expiring_documents(db, workspace_id, today, window)
    ]


@router.get("/{document_id}", response_model=DocumentRead)
def get_document_route(
    workspace_id: WorkspaceIdPath,
    document_id: UUID,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> DocumentRead:
    document = get_document(db, workspace_id, document_id)
    return to_read(document, _today(), get_settings().expiring_documents_days)


@router.put("/{document_id}", response_model=DocumentRead)
def update_document_route(
    workspace_id: WorkspaceIdPath,
    document_id: UUID,
    body: DocumentUpdate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    entities: EntityLookup = Depends(get_entity_lookup),
    audit: AuditLogService = Depends(get_audit_service),
) -> DocumentRead:
    """Update entity link, metadata or expiry date; revalidated against the document type."""
    actor_id = actor.user_id
    document = update_document(db, workspace_id, document_id, body, entities)
    result = to_read(document, _today(), get_settings().expiring_documents_days)
    audit.log(workspace_id, actor_id, AuditAction.DOCUMENT_UPDATED, TARGET, document_id)
    return result


@router.delete("/{document_id}", response_model=MessageResponse)
def delete_document_route(
    workspace_id: WorkspaceIdPath,
    document_id: UUID,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MessageResponse:
    delete_document(db, workspace_id, document_id)
    audit.log(workspace_id, actor.user_id, AuditAction.DOCUMENT_DELETED, TARGET, document_id)
    return MessageResponse(message="Document deleted")
