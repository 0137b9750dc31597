"""Workspace overview: counts and type summaries for a dashboard."""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from worktrail.models.document import Document, ExpiryStatus
from worktrail.models.entity import Entity, EntityRole
from worktrail.models.work_item import WorkItem, WorkItemStatus
from worktrail.schemas.overview import (
    DocumentCounts,
    DocumentTypeSummary,
    EntityCounts,
    WorkItemCounts,
    WorkItemTypeSummary,
    WorkspaceOverview,
)
from worktrail.services.document_types import list_document_types
from worktrail.services.work_items import list_work_item_types


def _grouped_counts(db: Session, column, workspace_column, workspace_id: UUID) -> dict[str, int]:
    rows = (
        db.query(column, func.count())
        .filter(workspace_column == workspace_id)
        .group_by(column)
        .all()
    )
    return {value: count for value, count in rows}


def _document_counts(
    db: Session, workspace_id: UUID, today: date, warning_days: int
) -> DocumentCounts:
    base = db.query(Document).filter(Document.workspace_id == workspace_id)
    total = base.count()
    expired = base.filter(Document.expiry_date < today).count()
    expiring = base.filter(
        Document.expiry_date >= today,
        Document.expiry_date <= today + timedelta(days=warning_days),
    ).count()
    return DocumentCounts(
        total=total,
        by_status={
            ExpiryStatus.VALID.value: total - expiring - expired,
            ExpiryStatus.EXPIRING.value: expiring,
            ExpiryStatus.EXPIRED.value: expired,
        },
    )


def get_workspace_overview(
    db: Session, workspace_id: UUID, today: date, warning_days: int
) -> WorkspaceOverview:
    """Aggregate entity, document and work item counts plus type summaries.

    Every role and status appears in the breakdowns, with 0 when absent.
    """
    by_role = _grouped_counts(db, Entity.role, Entity.workspace_id, workspace_id)
    by_status = _grouped_counts(db, WorkItem.status, WorkItem.workspace_id, workspace_id)

    entities = EntityCounts(
        total=sum(by_role.values()),
        by_role={role.value: by_role.get(role.value, 0) for role in EntityRole},
    )
    work_items = WorkItemCounts(
        total=sum(by_status.values()),
        by_status={s.value: by_status.get(s.value, 0) for s in WorkItemStatus},
    )

    return WorkspaceOverview(
        workspace_id=workspace_id,
        entities=entities,
        documents=_document_counts(db, workspace_id, today, warning_days),
        work_items=work_items,
        document_types=[
            DocumentTypeSummary(
                id=t.id,
                name=t.name,
                has_expiry=t.has_expiry,
                field_count=len(t.fields or []),
            )
            for t in list_document_types(db, workspace_id)
        ],
        work_item_types=[
            WorkItemTypeSummary(id=t.id, name=t.name, entity_type=t.entity_type)
            for t in list_work_item_types(db, workspace_id)
        ],
    )
