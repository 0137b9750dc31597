"""Workspace overview schemas."""

from __future__ import annotations

from uuid import UUID

from worktrail.models.entity import EntityRole
from worktrail.schemas.common import CamelModel


class EntityCounts(CamelModel):
    total: int
    by_role: dict[str, int]


class DocumentCounts(CamelModel):
    total: int
    # VALID includes documents without an expiry date
    by_status: dict[str, int]


class WorkItemCounts(CamelModel):
    total: int
    by_status: dict[str, int]


class DocumentTypeSummary(CamelModel):
    id: UUID
    name: str
    has_expiry: bool
    field_count: int


class WorkItemTypeSummary(CamelModel):
    id: UUID
    name: str
    entity_type: EntityRole | None = None


class WorkspaceOverview(CamelModel):
    workspace_id: UUID
    entities: EntityCounts
    documents: DocumentCounts
    work_items: WorkItemCounts
    document_types: list[DocumentTypeSummary]
    work_item_types: list[WorkItemTypeSummary]
