"""Work item and work item type API routes."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from worktrail.api.deps import (
    WorkspaceIdPath,
    get_audit_service,
    get_db,
    get_document_lookup,
    get_entity_lookup,
    require_admin,
    require_member,
)
from worktrail.api.idempotency import IdempotentRoute
from worktrail.config import get_settings
from worktrail.models.audit_log import AuditAction
from worktrail.models.work_item import WorkItemPriority, WorkItemStatus
from worktrail.models.workspace_member import WorkspaceMember
from worktrail.schemas.common import MessageResponse
from worktrail.schemas.document import DocumentRead
from worktrail.schemas.work_item import (
    LinkDocumentRequest,
    WorkItemCreate,
    WorkItemDocumentRead,
    WorkItemRead,
    WorkItemStatusUpdate,
    WorkItemTypeCreate,
    WorkItemTypeRead,
    WorkItemUpdate,
)
from worktrail.services import work_items as service
from worktrail.services.audit_log import AuditLogService
from worktrail.services.documents import to_read
from worktrail.services.lookups import DocumentLookup, EntityLookup

# Mounted at /api/workspaces/{workspaceId}/work-item-types
types_router = APIRouter()
types_idempotent_router = APIRouter(route_class=IdempotentRoute)

# Mounted at /api/workspaces/{workspaceId}/work-items
router = APIRouter()
idempotent_router = APIRouter(route_class=IdempotentRoute)

# Mounted at /api/workspaces/{workspaceId}/entities
by_entity_router = APIRouter()

TARGET = "WorkItem"
TYPE_TARGET = "WorkItemType"


# ── Work item types ──────────────────────────────────────────────────


@types_idempotent_router.post(
    "", response_model=WorkItemTypeRead, status_code=status.HTTP_201_CREATED
)
def create_type_route(
    workspace_id: WorkspaceIdPath,
    body: WorkItemTypeCreate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> WorkItemTypeRead:
    item_type = service.create_work_item_type(db, workspace_id, body)
    result = WorkItemTypeRead.model_validate(item_type)
    audit.log(
        workspace_id, actor.user_id, AuditAction.WORK_ITEM_TYPE_CREATED, TYPE_TARGET, item_type.id
    )
    return result


@types_router.get("", response_model=list[WorkItemTypeRead])
def list_types_route(
    workspace_id: WorkspaceIdPath,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[WorkItemTypeRead]:
    return [
        WorkItemTypeRead.model_validate(t) for t in service.list_work_item_types(db, workspace_id)
    ]


@types_router.delete("/{type_id}", response_model=MessageResponse)
def delete_type_route(
    workspace_id: WorkspaceIdPath,
    type_id: UUID,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MessageResponse:
    service.delete_work_item_type(db, workspace_id, type_id)
    audit.log(workspace_id, actor.user_id, AuditAction.WORK_ITEM_TYPE_DELETED, TYPE_TARGET, type_id)
    return MessageResponse(message="Work item type deleted")


# ── Work items ───────────────────────────────────────────────────────


@idempotent_router.post("", response_model=WorkItemRead, status_code=status.HTTP_201_CREATED)
def create_item_route(
    workspace_id: WorkspaceIdPath,
    body: WorkItemCreate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    entities: EntityLookup = Depends(get_entity_lookup),
    audit: AuditLogService = Depends(get_audit_service),
) -> WorkItemRead:
    """Create a work item in DRAFT status."""
    item = service.create_work_item(db, workspace_id, body, entities)
    result = WorkItemRead.model_validate(item)
    audit.log(workspace_id, actor.user_id, AuditAction.WORK_ITEM_CREATED, TARGET, item.id)
    return result


@router.get("", response_model=list[WorkItemRead])
def list_items_route(
    workspace_id: WorkspaceIdPath,
    status_filter: WorkItemStatus | None = Query(None, alias="status"),
    work_item_type_id: UUID | None = Query(None, alias="workItemTypeId"),
    entity_id: UUID | None = Query(None, alias="entityId"),
    assigned_to_user_id: int | None = Query(None, alias="assignedToUserId"),
    priority: WorkItemPriority | None = Query(None),
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[WorkItemRead]:
    items = service.list_work_items(
        db,
        workspace_id,
        status=status_filter,
        work_item_type_id=work_item_type_id,
        entity_id=entity_id,
        assigned_to_user_id=assigned_to_user_id,
        priority=priority,
    )
    return [WorkItemRead.model_validate(i) for i in items]


@router.get("/{item_id}", response_model=WorkItemRead)
def get_item_route(
    workspace_id: WorkspaceIdPath,
    item_id: UUID,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> WorkItemRead:
    return WorkItemRead.model_validate(service.load_work_item(db, item_id, workspace_id))


@router.put("/{item_id}", response_model=WorkItemRead)
def update_item_route(
    workspace_id: WorkspaceIdPath,
    item_id: UUID,
    body: WorkItemUpdate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    entities: EntityLookup = Depends(get_entity_lookup),
    audit: AuditLogService = Depends(get_audit_service),
) -> WorkItemRead:
    item = service.update_work_item(db, workspace_id, item_id, body, entities)
    result = WorkItemRead.model_validate(item)
    audit.log(workspace_id, actor.user_id, AuditAction.WORK_ITEM_UPDATED, TARGET, item_id)
    return result


@router.patch("/{item_id}/status", response_model=WorkItemRead)
def change_status_route(
    workspace_id: WorkspaceIdPath,
    item_id: UUID,
    body: WorkItemStatusUpdate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    audit: AuditLogService = Depends(get_audit_service),
) -> WorkItemRead:
    """Move the item along the status graph (409 if it changed concurrently)."""
    actor_id = actor.user_id
    item = service.transition_status(db, item_id, workspace_id, body.status)
    result = WorkItemRead.model_validate(item)
    audit.log(workspace_id, actor_id, AuditAction.WORK_ITEM_STATUS_CHANGED, TARGET, item_id)
    return result


@router.delete("/{item_id}", response_model=MessageResponse)
def delete_item_route(
    workspace_id: WorkspaceIdPath,
    item_id: UUID,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MessageResponse:
    service.delete_work_item(db, workspace_id, item_id)
    audit.log(workspace_id, actor.user_id, AuditAction.WORK_ITEM_DELETED, TARGET, item_id)
    return MessageResponse(message="Work item deleted")


# ── Document links ───────────────────────────────────────────────────


@idempotent_router.post(
    "/{item_id}/documents",
    response_model=WorkItemDocumentRead,
    status_code=status.HTTP_201_CREATED,
)
def link_document_route(
    workspace_id: WorkspaceIdPath,
    item_id: UUID,
    body: LinkDocumentRequest,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    documents: DocumentLookup = Depends(get_document_lookup),
    audit: AuditLogService = Depends(get_audit_service),
) -> WorkItemDocumentRead:
    link = service.link_document(db, workspace_id, item_id, body.document_id, documents)
    result = WorkItemDocumentRead.model_validate(link)
    audit.log(workspace_id, actor.user_id, AuditAction.WORK_ITEM_DOCUMENT_LINKED, TARGET, item_id)
    return result


@router.get("/{item_id}/documents", response_model=list[DocumentRead])
def linked_documents_route(
    workspace_id: WorkspaceIdPath,
    item_id: UUID,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[DocumentRead]:
    today = datetime.now(UTC).date()
    days = get_settings().expiring_documents_days
    return [to_read(d, today, days) for d in service.list_linked_documents(db, workspace_id, item_id)]


@router.delete("/{item_id}/documents/{document_id}", response_model=MessageResponse)
def unlink_document_route(
    workspace_id: WorkspaceIdPath,
    item_id: UUID,
    document_id: UUID,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    audit: AuditLogService = Depends(get_audit_service),
) -> MessageResponse:
    service.unlink_document(db, workspace_id, item_id, document_id)
    audit.log(
        workspace_id, actor.user_id, AuditAction.WORK_ITEM_DOCUMENT_UNLINKED, TARGET, item_id
    )
    return MessageResponse(message="Document unlinked")


# ── Items by entity ──────────────────────────────────────────────────


@by_entity_router.get("/{entity_id}/work-items", response_model=list[WorkItemRead])
def items_for_entity_route(
    workspace_id: WorkspaceIdPath,
    entity_id: UUID,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[WorkItemRead]:
    items = service.list_items_for_entity(db, workspace_id, entity_id)
    return [WorkItemRead.model_validate(i) for i in items]
