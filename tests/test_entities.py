"""Entity CRUD and delete cascade."""

from __future__ import annotations

from worktrail.models import Document, Entity, WorkItem, WorkItemDocument, WorkspaceRole


def _url(actor, suffix: str = "") -> str:
    return f"/api/workspaces/{actor.workspace_id}/entities{suffix}"


def test_create_and_get(client, owner, emitter):
    created = client.post(
        _url(owner), json={"name": "Globex", "role": "VENDOR"}, headers=owner.headers
    )
    assert created.status_code == 201
    body = created.json()
    assert body["name"] == "Globex"
    assert body["role"] == "VENDOR"
    assert body["workspaceId"] == str(owner.workspace_id)

    fetched = client.get(_url(owner, f"/{body['id']}"), headers=owner.headers)
    assert fetched.json() == body
    # entity events are audited but not broadcast
    assert emitter.events == []


def test_invalid_role_is_422(client, owner):
    response = client.post(
        _url(owner), json={"name": "X", "role": "PARTNER"}, headers=owner.headers
    )
    assert response.status_code == 422


def test_list_filters_by_role(client, owner, entity):
    client.post(_url(owner), json={"name": "Globex", "role": "VENDOR"}, headers=owner.headers)

    everything = client.get(_url(owner), headers=owner.headers).json()
    assert {e["name"] for e in everything} == {"Acme Ltd", "Globex"}
    vendors = client.get(_url(owner), params={"role": "VENDOR"}, headers=owner.headers).json()
    assert [e["name"] for e in vendors] == ["Globex"]


def test_update(client, owner, entity):
    response = client.put(
        _url(owner, f"/{entity.id}"), json={"name": "Acme Group"}, headers=owner.headers
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Acme Group"
    assert response.json()["role"] == "CUSTOMER"


def test_unknown_entity(client, owner):
    response = client.get(
        _url(owner, "/00000000-0000-0000-0000-000000000000"), headers=owner.headers
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Entity not found"


def test_other_workspace_entity_is_not_visible(client, owner, entity, make_actor):
    other = make_actor()
    response = client.get(_url(other, f"/{entity.id}"), headers=other.headers)
    assert response.status_code == 404


def test_delete_cascades_to_work_items(client, db, owner, entity, work_item, document):
    document.entity_id = entity.id
    db.add(WorkItemDocument(work_item_id=work_item.id, document_id=document.id))
    db.commit()

    response = client.delete(_url(owner, f"/{entity.id}"), headers=owner.headers)
    assert response.status_code == 200

    db.expire_all()
    assert db.query(Entity).count() == 0
    assert db.query(WorkItem).count() == 0
    assert db.query(WorkItemDocument).count() == 0
    remaining = db.query(Document).one()
    assert remaining.entity_id is None


def test_member_cannot_delete(client, owner, entity, make_actor, add_member):
    member = make_actor()
    add_member(owner.workspace_id, member, WorkspaceRole.MEMBER)
    response = client.delete(_url(owner, f"/{entity.id}"), headers=member.headers)
    assert response.status_code == 403
