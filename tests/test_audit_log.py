"""Audit recording, real-time fan-out and the audit log query endpoint."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from worktrail.errors import ValidationError
from worktrail.models import AuditAction, AuditLog, WorkspaceRole
from worktrail.services.audit_log import REALTIME_EVENTS, AuditLogService, parse_iso_datetime


class TestAuditLogService:
    def test_writes_entry_and_emits_mapped_event(self, db, session_factory, emitter, owner):
        service = AuditLogService(session_factory, emitter)
        service.log(
            owner.workspace_id, owner.user_id, AuditAction.DOCUMENT_DELETED, "Document", "doc-1"
        )

        entry = db.query(AuditLog).one()
        assert entry.action == "DOCUMENT_DELETED"
        assert entry.target_type == "Document"
        assert entry.target_id == "doc-1"
        assert emitter.events == [
            (
                str(owner.workspace_id),
                "document:deleted",
                {
                    "targetId": "doc-1",
                    "targetType": "Document",
                    "workspaceId": str(owner.workspace_id),
                },
            )
        ]

    def test_unmapped_action_is_not_emitted(self, db, session_factory, emitter, owner):
        service = AuditLogService(session_factory, emitter)
        service.log(owner.workspace_id, owner.user_id, AuditAction.ENTITY_CREATED, "Entity", "e-1")

        assert db.query(AuditLog).count() == 1
        assert emitter.events == []

    def test_realtime_mapping(self):
        assert len(REALTIME_EVENTS) == 8
        assert AuditAction.ENTITY_CREATED not in REALTIME_EVENTS
        assert REALTIME_EVENTS[AuditAction.WORKSPACE_MEMBER_ROLE_UPDATED] == (
            "workspace:member-updated"
        )

    def test_write_failure_never_raises(self, emitter, owner, caplog):
        def broken_factory():
            raise RuntimeError("database gone")

        service = AuditLogService(broken_factory, emitter)
        with caplog.at_level(logging.ERROR, logger="worktrail.services.audit_log"):
            service.log(
                owner.workspace_id, owner.user_id, AuditAction.DOCUMENT_DELETED, "Document", "d"
            )

        assert emitter.events == []
        assert "Audit write failed" in caplog.text

    def test_emit_failure_is_swallowed(self, db, session_factory, owner):
        class BrokenEmitter:
            def emit(self, workspace_id, event, payload):
                raise RuntimeError("socket closed")

        service = AuditLogService(session_factory, BrokenEmitter())
        service.log(
            owner.workspace_id, owner.user_id, AuditAction.DOCUMENT_DELETED, "Document", "d"
        )
        assert db.query(AuditLog).count() == 1

    def test_operation_succeeds_when_audit_fails(self, client, app, db, owner, emitter):
        def broken_factory():
            raise RuntimeError("database gone")

        app.state.audit_service = AuditLogService(broken_factory, emitter)
        response = client.post(
            f"/api/workspaces/{owner.workspace_id}/entities",
            json={"name": "Globex", "role": "VENDOR"},
            headers=owner.headers,
        )

        assert response.status_code == 201
        assert db.query(AuditLog).count() == 0


class TestParseIsoDatetime:
    def test_date_only(self):
        assert parse_iso_datetime("2026-03-01", "fromDate") == datetime(2026, 3, 1)

    def test_aware_value_converted_to_utc(self):
        parsed = parse_iso_datetime("2026-03-01T12:00:00+02:00", "toDate")
        assert parsed == datetime(2026, 3, 1, 10, 0, tzinfo=UTC)

    def test_trailing_z(self):
        assert parse_iso_datetime("2026-03-01T00:00:00Z", "toDate").tzinfo is not None

    def test_empty_is_none(self):
        assert parse_iso_datetime(None, "fromDate") is None
        assert parse_iso_datetime("", "fromDate") is None

    def test_garbage(self):
        with pytest.raises(ValidationError) as exc:
            parse_iso_datetime("yesterday", "fromDate")
        assert exc.value.message == "Invalid fromDate: must be an ISO-8601 date"


@pytest.fixture
def seeded_logs(db, owner):
    """Five entries one day apart, oldest first, starting 2026-03-01."""
    start = datetime(2026, 3, 1, 9, 0)
    actions = [
        AuditAction.ENTITY_CREATED,
        AuditAction.ENTITY_UPDATED,
        AuditAction.DOCUMENT_UPLOADED,
        AuditAction.ENTITY_UPDATED,
        AuditAction.ENTITY_DELETED,
    ]
    for day, action in enumerate(actions):
        db.add(
            AuditLog(
                workspace_id=owner.workspace_id,
                user_id=owner.user_id,
                action=action.value,
                target_type="Document" if action == AuditAction.DOCUMENT_UPLOADED else "Entity",
                target_id=f"t-{day}",
                created_at=start + timedelta(days=day),
            )
        )
    db.commit()


class TestQueryEndpoint:
    def _url(self, actor) -> str:
        return f"/api/workspaces/{actor.workspace_id}/audit-logs"

    def test_newest_first_with_total(self, client, owner, seeded_logs):
        body = client.get(self._url(owner), headers=owner.headers).json()

        assert body["total"] == 5
        assert body["limit"] == 50
        assert body["offset"] == 0
        assert [log["targetId"] for log in body["logs"]] == ["t-4", "t-3", "t-2", "t-1", "t-0"]

    def test_pagination(self, client, owner, seeded_logs):
        body = client.get(
            self._url(owner), params={"limit": 2, "offset": 1}, headers=owner.headers
        ).json()

        assert body["total"] == 5
        assert [log["targetId"] for log in body["logs"]] == ["t-3", "t-2"]

    def test_filters(self, client, owner, seeded_logs):
        updated = client.get(
            self._url(owner), params={"action": "ENTITY_UPDATED"}, headers=owner.headers
        ).json()
        assert updated["total"] == 2

        documents = client.get(
            self._url(owner), params={"targetType": "Document"}, headers=owner.headers
        ).json()
        assert [log["targetId"] for log in documents["logs"]] == ["t-2"]

        window = client.get(
            self._url(owner),
            params={"fromDate": "2026-03-02", "toDate": "2026-03-04"},
            headers=owner.headers,
        ).json()
        assert [log["targetId"] for log in window["logs"]] == ["t-2", "t-1"]

        by_user = client.get(
            self._url(owner), params={"userId": owner.user_id + 1000}, headers=owner.headers
        ).json()
        assert by_user["total"] == 0

    def test_invalid_date(self, client, owner):
        response = client.get(self._url(owner), params={"toDate": "soon"}, headers=owner.headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid toDate: must be an ISO-8601 date"

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 201}, {"offset": -1}])
    def test_paging_bounds(self, client, owner, params):
        response = client.get(self._url(owner), params=params, headers=owner.headers)
        assert response.status_code == 400

    def test_scoped_to_workspace(self, client, owner, make_actor, seeded_logs):
        other = make_actor()
        body = client.get(self._url(other), headers=other.headers).json()
        assert body["total"] == 0

    def test_member_cannot_read(self, client, owner, make_actor, add_member):
        member = make_actor()
        add_member(owner.workspace_id, member, WorkspaceRole.MEMBER)
        response = client.get(self._url(owner), headers=member.headers)
        assert response.status_code == 403

    def test_operations_are_recorded(self, client, db, owner):
        client.post(
            f"/api/workspaces/{owner.workspace_id}/entities",
            json={"name": "Globex", "role": "VENDOR"},
            headers=owner.headers,
        )
        body = client.get(self._url(owner), headers=owner.headers).json()
        assert [log["action"] for log in body["logs"]] == ["ENTITY_CREATED"]
        assert body["logs"][0]["userId"] == owner.user_id
