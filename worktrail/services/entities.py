"""Entity CRUD."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from worktrail.errors import NotFoundError
from worktrail.models.document import Document
from worktrail.models.entity import Entity, EntityRole
from worktrail.models.work_item import WorkItem
from worktrail.models.work_item_document import WorkItemDocument
from worktrail.schemas.entity import EntityCreate, EntityUpdate


def create_entity(db: Session, workspace_id: UUID, data: EntityCreate) -> Entity:
    entity = Entity(workspace_id=workspace_id, name=data.name.strip(), role=data.role.value)
    db.add(entity)
    db.commit()
    db.refresh(entity)
    return entity


def list_entities(db: Session, workspace_id: UUID, role: EntityRole | None = None) -> list[Entity]:
    query = db.query(Entity).filter(Entity.workspace_id == workspace_id)
    if role is not None:
        query = query.filter(Entity.role == role.value)
    return query.order_by(Entity.created_at.desc()).all()


def get_entity(db: Session, workspace_id: UUID, entity_id: UUID) -> Entity:
    entity = (
        db.query(Entity)
        .filter(Entity.id == entity_id, Entity.workspace_id == workspace_id)
        .first()
    )
    if entity is None:
        raise NotFoundError("Entity not found")
    return entity


def update_entity(db: Session, workspace_id: UUID, entity_id: UUID, data: EntityUpdate) -> Entity:
    entity = get_entity(db, workspace_id, entity_id)
    if data.name is not None:
        entity.name = data.name.strip()
    if data.role is not None:
        entity.role = data.role.value
    db.commit()
    db.refresh(entity)
    return entity


def delete_entity(db: Session, workspace_id: UUID, entity_id: UUID) -> None:
    """Delete an entity together with its work items and their document links."""
    entity = get_entity(db, workspace_id, entity_id)
    item_ids = [
        row[0] for row in db.query(WorkItem.id).filter(WorkItem.entity_id == entity.id).all()
    ]
    if item_ids:
        db.query(WorkItemDocument).filter(WorkItemDocument.work_item_id.in_(item_ids)).delete(
            synchronize_session=False
        )
        db.query(WorkItem).filter(WorkItem.id.in_(item_ids)).delete(synchronize_session=False)
    db.query(Document).filter(Document.entity_id == entity.id).update(
        {Document.entity_id: None}, synchronize_session=False
    )
    db.delete(entity)
    db.commit()
