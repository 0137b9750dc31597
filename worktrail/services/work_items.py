"""Work items: types, CRUD, the status state machine and document links.

Status moves along a fixed graph::

    DRAFT     -> ACTIVE
    ACTIVE    -> DRAFT, COMPLETED
    COMPLETED -> ACTIVE

and is written with a compare-and-swap on the status that was read, so of two
racing transitions on one item at most one is applied; the other gets a
ConflictError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from worktrail.errors import ConflictError, NotFoundError, ValidationError
from worktrail.models.document import Document
from worktrail.models.user import User
from worktrail.models.work_item import WorkItem, WorkItemPriority, WorkItemStatus
from worktrail.models.work_item_document import WorkItemDocument
from worktrail.models.work_item_type import WorkItemType
from worktrail.schemas.work_item import WorkItemCreate, WorkItemTypeCreate, WorkItemUpdate
from worktrail.services.lookups import DocumentLookup, EntityLookup

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 2000

TRANSITIONS: dict[WorkItemStatus, frozenset[WorkItemStatus]] = {
    WorkItemStatus.DRAFT: frozenset({WorkItemStatus.ACTIVE}),
    WorkItemStatus.ACTIVE: frozenset({WorkItemStatus.DRAFT, WorkItemStatus.COMPLETED}),
    WorkItemStatus.COMPLETED: frozenset({WorkItemStatus.ACTIVE}),
}

# Declaration order, for stable error messages
_STATUS_ORDER = list(WorkItemStatus)


def allowed_transitions(current: WorkItemStatus) -> list[WorkItemStatus]:
    return [s for s in _STATUS_ORDER if s in TRANSITIONS[current]]


def can_transition(current: WorkItemStatus, target: WorkItemStatus) -> bool:
    return target in TRANSITIONS[current]


def parse_status(value: str) -> WorkItemStatus:
    try:
        return WorkItemStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in _STATUS_ORDER)
        raise ValidationError(f"Invalid status. Must be one of: {allowed}") from None


# ── Work item types ──────────────────────────────────────────────────


def create_work_item_type(
    db: Session, workspace_id: UUID, data: WorkItemTypeCreate
) -> WorkItemType:
    item_type = WorkItemType(
        workspace_id=workspace_id,
        name=data.name.strip(),
        description=data.description,
        entity_type=data.entity_type.value if data.entity_type else None,
    )
    db.add(item_type)
    db.commit()
    db.refresh(item_type)
    return item_type


def list_work_item_types(db: Session, workspace_id: UUID) -> list[WorkItemType]:
    return (
        db.query(WorkItemType)
        .filter(WorkItemType.workspace_id == workspace_id)
        .order_by(WorkItemType.name)
        .all()
    )


def get_work_item_type(db: Session, workspace_id: UUID, type_id: UUID) -> WorkItemType | None:
    return (
        db.query(WorkItemType)
        .filter(WorkItemType.id == type_id, WorkItemType.workspace_id == workspace_id)
        .first()
    )


def delete_work_item_type(db: Session, workspace_id: UUID, type_id: UUID) -> None:
    """Delete a type; refused while any work item references it."""
    item_type = get_work_item_type(db, workspace_id, type_id)
    if item_type is None:
        raise NotFoundError("Work item type not found")
    in_use = db.query(WorkItem).filter(WorkItem.work_item_type_id == item_type.id).count()
    if in_use:
        raise ValidationError(f"Cannot delete: {in_use} work item(s) reference this type")
    db.delete(item_type)
    db.commit()


# ── Work items ───────────────────────────────────────────────────────


@dataclass
class WorkItemDraft:
    """A work item that has not been persisted yet. Always starts in DRAFT."""

    workspace_id: UUID
    work_item_type_id: UUID
    entity_id: UUID
    assigned_to_user_id: int
    title: str
    description: str | None = None
    priority: WorkItemPriority | None = None
    due_date: datetime | None = None


def validate_work_item_fields(title: str | None, description: str | None) -> None:
    """Field rules shared by creation and updates."""
    if title is None or not title.strip():
        raise ValidationError("Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")


def _check_entity_restriction(item_type: WorkItemType, entity_role: str) -> None:
    if item_type.entity_type and entity_role != item_type.entity_type:
        raise ValidationError(
            f"This work item type is restricted to {item_type.entity_type} entities, "
            f"but entity has role {entity_role}"
        )


def create_work_item(
    db: Session,
    workspace_id: UUID,
    data: WorkItemCreate,
    entities: EntityLookup,
) -> WorkItem:
    item_type = get_work_item_type(db, workspace_id, data.work_item_type_id)
    if item_type is None:
        raise NotFoundError("Work item type not found in this workspace")
    entity = entities.find_by_id(data.entity_id, workspace_id)
    if entity is None:
        raise NotFoundError("Entity not found in this workspace")
    _check_entity_restriction(item_type, entity.role)
    if db.get(User, data.assigned_to_user_id) is None:
        raise NotFoundError("Assigned user not found")

    draft = WorkItemDraft(
        workspace_id=workspace_id,
        work_item_type_id=item_type.id,
        entity_id=entity.id,
        assigned_to_user_id=data.assigned_to_user_id,
        title=data.title.strip() if data.title else data.title,
        description=data.description,
        priority=data.priority,
        due_date=data.due_date,
    )
    validate_work_item_fields(draft.title, draft.description)

    item = WorkItem(
        workspace_id=draft.workspace_id,
        work_item_type_id=draft.work_item_type_id,
        entity_id=draft.entity_id,
        assigned_to_user_id=draft.assigned_to_user_id,
        title=draft.title,
        description=draft.description,
        status=WorkItemStatus.DRAFT.value,
        priority=draft.priority.value if draft.priority else None,
        due_date=draft.due_date,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def list_work_items(
    db: Session,
    workspace_id: UUID,
    *,
    status: WorkItemStatus | None = None,
    work_item_type_id: UUID | None = None,
    entity_id: UUID | None = None,
    assigned_to_user_id: int | None = None,
    priority: WorkItemPriority | None = None,
) -> list[WorkItem]:
    query = db.query(WorkItem).filter(WorkItem.workspace_id == workspace_id)
    if status is not None:
        query = query.filter(WorkItem.status == status.value)
    if work_item_type_id is not None:
        query = query.filter(WorkItem.work_item_type_id == work_item_type_id)
    if entity_id is not None:
        query = query.filter(WorkItem.entity_id == entity_id)
    if assigned_to_user_id is not None:
        query = query.filter(WorkItem.assigned_to_user_id == assigned_to_user_id)
    if priority is not None:
        query = query.filter(WorkItem.priority == priority.value)
    return query.order_by(WorkItem.created_at.desc()).all()


def load_work_item(db: Session, item_id: UUID, workspace_id: UUID) -> WorkItem:
    item = (
        db.query(WorkItem)
        .filter(WorkItem.id == item_id, WorkItem.workspace_id == workspace_id)
        .first()
    )
    if item is None:
        raise NotFoundError("Work item not found")
    return item


def update_work_item(
    db: Session,
    workspace_id: UUID,
    item_id: UUID,
    data: WorkItemUpdate,
    entities: EntityLookup,
) -> WorkItem:
    """Apply field changes. Never touches ``status``."""
    item = load_work_item(db, item_id, workspace_id)
    changes = data.model_dump(exclude_unset=True)

    title = changes.get("title", item.title)
    description = changes.get("description", item.description)
    validate_work_item_fields(title, description)

    if changes.get("entity_id") is not None:
        entity = entities.find_by_id(changes["entity_id"], workspace_id)
        if entity is None:
            raise NotFoundError("Entity not found in this workspace")
        item_type = get_work_item_type(db, workspace_id, item.work_item_type_id)
        if item_type is not None:
            _check_entity_restriction(item_type, entity.role)
        item.entity_id = entity.id
    if changes.get("assigned_to_user_id") is not None:
        if db.get(User, changes["assigned_to_user_id"]) is None:
            raise NotFoundError("Assigned user not found")
        item.assigned_to_user_id = changes["assigned_to_user_id"]

    item.title = title.strip()
    item.description = description
    if "priority" in changes:
        item.priority = data.priority.value if data.priority else None
    if "due_date" in changes:
        item.due_date = data.due_date
    db.commit()
    db.refresh(item)
    return item


def transition_status(db: Session, item_id: UUID, workspace_id: UUID, target: str) -> WorkItem:
    """Move a work item to ``target`` status.

    Raises ValidationError for an unknown status, a self-transition or an edge
    not in TRANSITIONS; NotFoundError for an unknown item; ConflictError when
    the status changed after it was read.
    """
    target_status = parse_status(target)
    item = load_work_item(db, item_id, workspace_id)
    current = WorkItemStatus(item.status)

    if current == target_status:
        raise ValidationError(f"Work item is already in status {current.value}")
    if not can_transition(current, target_status):
        allowed = ", ".join(s.value for s in allowed_transitions(current))
        raise ValidationError(
            f"Cannot transition from {current.value} to {target_status.value}. "
            f"Allowed transitions: {allowed}"
        )

    result = db.execute(
        update(WorkItem)
        .where(
            WorkItem.id == item.id,
            WorkItem.workspace_id == workspace_id,
            WorkItem.status == current.value,
        )
        .values(status=target_status.value, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        logger.info(
            "Status CAS lost for work item %s (%s -> %s)",
            item_id,
            current.value,
            target_status.value,
        )
        raise ConflictError("Work item status changed concurrently; reload and retry")
    db.commit()
    db.refresh(item)
    return item


def delete_work_item(db: Session, workspace_id: UUID, item_id: UUID) -> None:
    """Delete a work item and its document links."""
    item = load_work_item(db, item_id, workspace_id)
    db.query(WorkItemDocument).filter(WorkItemDocument.work_item_id == item.id).delete(
        synchronize_session=False
    )
    db.delete(item)
    db.commit()


def list_items_for_entity(db: Session, workspace_id: UUID, entity_id: UUID) -> list[WorkItem]:
    return list_work_items(db, workspace_id, entity_id=entity_id)


# ── Document links ───────────────────────────────────────────────────


def link_document(
    db: Session,
    workspace_id: UUID,
    item_id: UUID,
    document_id: UUID,
    documents: DocumentLookup,
) -> WorkItemDocument:
    """Link a document to a work item. The unique pair constraint rejects duplicates."""
    item = load_work_item(db, item_id, workspace_id)
    document = documents.find_by_id(document_id, workspace_id)
    if document is None:
        raise NotFoundError("Document not found in this workspace")

    link = WorkItemDocument(work_item_id=item.id, document_id=document.id)
    db.add(link)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Document is already linked to this work item") from None
    db.refresh(link)
    return link


def unlink_document(db: Session, workspace_id: UUID, item_id: UUID, document_id: UUID) -> None:
    item = load_work_item(db, item_id, workspace_id)
    deleted = (
        db.query(WorkItemDocument)
        .filter(
            WorkItemDocument.work_item_id == item.id,
            WorkItemDocument.document_id == document_id,
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Document is not linked to this work item")
    db.commit()


def list_linked_documents(db: Session, workspace_id: UUID, item_id: UUID) -> list[Document]:
    item = load_work_item(db, item_id, workspace_id)
    return (
        db.query(Document)
        .join(WorkItemDocument, WorkItemDocument.document_id == Document.id)
        .filter(WorkItemDocument.work_item_id == item.id)
        .order_by(WorkItemDocument.linked_at)
        .all()
    )
