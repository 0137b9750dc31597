"""Workspace overview counts."""

from __future__ import annotations

from datetime import date, timedelta

from worktrail.models import Document, Entity, WorkItem, WorkItemStatus, WorkItemType, WorkspaceRole
from worktrail.services.overview import get_workspace_overview

TODAY = date(2026, 6, 1)


def _add_document(db, owner, document_type, expiry: date | None) -> None:
    db.add(
        Document(
            workspace_id=owner.workspace_id,
            document_type_id=document_type.id,
            file_name="f.pdf",
            file_size=10,
            metadata_={"contractNo": "C"},
            uploaded_by=owner.user_id,
            expiry_date=expiry,
        )
    )


def test_empty_workspace(db, owner):
    overview = get_workspace_overview(db, owner.workspace_id, TODAY, 30)

    assert overview.entities.total == 0
    assert overview.entities.by_role == {"SELF": 0, "CUSTOMER": 0, "EMPLOYEE": 0, "VENDOR": 0}
    assert overview.documents.by_status == {"VALID": 0, "EXPIRING": 0, "EXPIRED": 0}
    assert overview.work_items.by_status == {"DRAFT": 0, "ACTIVE": 0, "COMPLETED": 0}
    assert overview.document_types == []
    assert overview.work_item_types == []


def test_counts(db, owner, entity, work_item, document_type):
    db.add(Entity(workspace_id=owner.workspace_id, name="Globex", role="VENDOR"))
    db.add(Entity(workspace_id=owner.workspace_id, name="Initech", role="VENDOR"))
    db.add(
        WorkItem(
            workspace_id=owner.workspace_id,
            work_item_type_id=work_item.work_item_type_id,
            entity_id=entity.id,
            assigned_to_user_id=owner.user_id,
            title="Done",
            status=WorkItemStatus.COMPLETED.value,
        )
    )
    _add_document(db, owner, document_type, None)
    _add_document(db, owner, document_type, TODAY + timedelta(days=90))
    _add_document(db, owner, document_type, TODAY + timedelta(days=10))
    _add_document(db, owner, document_type, TODAY - timedelta(days=1))
    db.commit()

    overview = get_workspace_overview(db, owner.workspace_id, TODAY, 30)

    assert overview.entities.total == 3
    assert overview.entities.by_role["VENDOR"] == 2
    assert overview.entities.by_role["CUSTOMER"] == 1
    assert overview.documents.total == 4
    assert overview.documents.by_status == {"VALID": 2, "EXPIRING": 1, "EXPIRED": 1}
    assert overview.work_items.total == 2
    assert overview.work_items.by_status == {"DRAFT": 1, "ACTIVE": 0, "COMPLETED": 1}
    [doc_type] = overview.document_types
    assert doc_type.name == "Contract"
    assert doc_type.has_expiry is True
    assert doc_type.field_count == 1
    assert [t.name for t in overview.work_item_types] == ["Onboarding"]


def test_scoped_to_workspace(db, owner, entity, make_actor):
    other = make_actor()
    overview = get_workspace_overview(db, other.workspace_id, TODAY, 30)
    assert overview.entities.total == 0


def test_overview_endpoint(client, db, owner, entity):
    db.add(
        WorkItemType(workspace_id=owner.workspace_id, name="Purchase", entity_type="VENDOR")
    )
    db.commit()

    response = client.get(f"/api/workspaces/{owner.workspace_id}/overview", headers=owner.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["workspaceId"] == str(owner.workspace_id)
    assert body["entities"] == {
        "total": 1,
        "byRole": {"SELF": 0, "CUSTOMER": 1, "EMPLOYEE": 0, "VENDOR": 0},
    }
    assert body["workItems"]["total"] == 0
    assert body["workItemTypes"][0]["entityType"] == "VENDOR"


def test_viewer_cannot_read_overview(client, owner, make_actor, add_member):
    viewer = make_actor()
    add_member(owner.workspace_id, viewer, WorkspaceRole.VIEWER)
    response = client.get(f"/api/workspaces/{owner.workspace_id}/overview", headers=viewer.headers)
    assert response.status_code == 403
