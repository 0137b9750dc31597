"""Work item and work item type schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from worktrail.models.entity import EntityRole
from worktrail.models.work_item import WorkItemPriority, WorkItemStatus
from worktrail.schemas.common import CamelModel


class WorkItemTypeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    entity_type: EntityRole | None = None


class WorkItemTypeRead(CamelModel):
    id: UUID
    workspace_id: UUID
    name: str
    description: str | None
    entity_type: EntityRole | None
    created_at: datetime


class WorkItemCreate(CamelModel):
    work_item_type_id: UUID
    entity_id: UUID
    assigned_to_user_id: int
    title: str
    description: str | None = None
    priority: WorkItemPriority | None = None
    due_date: datetime | None = None


class WorkItemUpdate(CamelModel):
    """Field update. Status is not accepted here; use the status endpoint."""

    title: str | None = None
    description: str | None = None
    priority: WorkItemPriority | None = None
    due_date: datetime | None = None
    entity_id: UUID | None = None
    assigned_to_user_id: int | None = None


class WorkItemStatusUpdate(CamelModel):
    # Plain string so an unknown value reaches the state machine's own message
    status: str


class WorkItemRead(CamelModel):
    id: UUID
    workspace_id: UUID
    work_item_type_id: UUID
    entity_id: UUID
    assigned_to_user_id: int
    title: str
    description: str | None
    status: WorkItemStatus
    priority: WorkItemPriority | None
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime


class LinkDocumentRequest(CamelModel):
    document_id: UUID


class WorkItemDocumentRead(CamelModel):
    id: UUID
    work_item_id: UUID
    document_id: UUID
    linked_at: datetime
