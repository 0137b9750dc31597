"""Entity API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
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
from worktrail.models.entity import EntityRole
from worktrail.models.workspace_member import WorkspaceMember
from worktrail.schemas.common import MessageResponse
from worktrail.schemas.entity import EntityCreate, EntityRead, EntityUpdate
from worktrail.services.audit_log import AuditLogService
from worktrail.services.entities import (
    create_entity,
    delete_entity,
    get_entity,
    list_entities,
    update_entity,
)

router = APIRouter()
idempotent_router = APIRouter(route_class=IdempotentRoute)

TARGET = "Entity"


@idempotent_router.post("", response_model=EntityRead, status_code=status.HTTP_201_CREATED)
def create_entity_route(
    workspace_id: WorkspaceIdPath,
    body: EntityCreate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    audit: AuditLogService = Depends(get_audit_service),
) -> EntityRead:
    entity = create_entity(db, workspace_id, body)
    result = EntityRead.model_validate(entity)
    audit.log(workspace_id, actor.user_id, AuditAction.ENTITY_CREATED, TARGET, entity.id)
    return result


@router.get("", response_model=list[EntityRead])
def list_entities_route(
    workspace_id: WorkspaceIdPath,
    role: EntityRole | None = Query(None, description="Only entities with this role"),
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> list[EntityRead]:
    return [EntityRead.model_validate(e) for e in list_entities(db, workspace_id, role)]


@router.get("/{entity_id}", response_model=EntityRead)
def get_entity_route(
    workspace_id: WorkspaceIdPath,
    entity_id: UUID,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> EntityRead:
    return EntityRead.model_validate(get_entity(db, workspace_id, entity_id))


@router.put("/{entity_id}", response_model=EntityRead)
def update_entity_route(
    workspace_id: WorkspaceIdPath,
    entity_id: UUID,
    body: EntityUpdate,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_member),
    audit: AuditLogService = Depends(get_audit_service),
) -> EntityRead:
    entity = update_entity(db, workspace_id, entity_id, body)
    result = EntityRead.model_validate(entity)
    audit.log(workspace_id, actor.user_id, AuditAction.ENTITY_UPDATED, TARGET, entity_id)
    return result


@router.delete("/{entity_id}", response_model=MessageResponse)
def delete_entity_route(
    workspace_id: WorkspaceIdPath,
    entity_id: UUID,
    db: Session = Depends(get_db),
    actor: WorkspaceMember = Depends(require_admin),
    audit: AuditLogService = Depends(get_audit_service),
) -> MessageResponse:
    delete_entity(db, workspace_id, entity_id)
    audit.log(workspace_id, actor.user_id, AuditAction.ENTITY_DELETED, TARGET, entity_id)
    return MessageResponse(message="Entity deleted")
