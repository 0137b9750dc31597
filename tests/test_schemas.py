"""Tests for Pydantic schemas — creation, validation, and rejection of bad data."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from worktrail.models.document import ExpiryStatus
from worktrail.models.entity import EntityRole
from worktrail.models.work_item import WorkItemPriority
from worktrail.schemas.auth import SignupRequest
from worktrail.schemas.document import DocumentCreate, DocumentRead
from worktrail.schemas.document_type import FieldDefinition
from worktrail.schemas.entity import EntityCreate
from worktrail.schemas.work_item import WorkItemCreate, WorkItemStatusUpdate
from worktrail.schemas.workspace import MemberInvite


# ── Casing ───────────────────────────────────────────────────────────


class TestCamelCase:
    def test_accepts_camel_and_snake_input(self) -> None:
        type_id, entity_id = uuid.uuid4(), uuid.uuid4()
        camel = WorkItemCreate.model_validate(
            {
                "workItemTypeId": str(type_id),
                "entityId": str(entity_id),
                "assignedToUserId": 1,
                "title": "T",
            }
        )
        snake = WorkItemCreate(
            work_item_type_id=type_id, entity_id=entity_id, assigned_to_user_id=1, title="T"
        )
        assert camel == snake

    def test_dumps_camel_by_alias(self) -> None:
        read = DocumentRead(
            id=uuid.uuid4(),
            workspace_id=uuid.uuid4(),
            document_type_id=uuid.uuid4(),
            entity_id=None,
            file_name="a.pdf",
            file_size=1,
            mime_type=None,
            metadata={},
            expiry_date=None,
            expiry_status=ExpiryStatus.NO_EXPIRY,
            uploaded_by=1,
            created_at=datetime.now(UTC),
        )
        dumped = read.model_dump(by_alias=True)
        assert "fileName" in dumped
        assert "expiryStatus" in dumped
        assert "file_name" not in dumped


# ── Auth ─────────────────────────────────────────────────────────────


class TestSignupRequest:
    def test_valid(self) -> None:
        req = SignupRequest(email="a@example.com", password="long-enough")
        assert req.name is None

    @pytest.mark.parametrize("email", ["", "no-at-sign", "two@@example.com", "sp ace@x.io"])
    def test_rejects_bad_email(self, email: str) -> None:
        with pytest.raises(ValidationError):
            SignupRequest(email=email, password="long-enough")

    def test_rejects_short_password(self) -> None:
        with pytest.raises(ValidationError):
            SignupRequest(email="a@example.com", password="short")


# ── Workspaces ───────────────────────────────────────────────────────


class TestMemberInvite:
    def test_by_user_id(self) -> None:
        assert MemberInvite(invited_user_id=3, role="MEMBER").invited_user_id == 3

    def test_by_email(self) -> None:
        invite = MemberInvite.model_validate({"invitedEmail": "b@example.com", "role": "VIEWER"})
        assert invite.invited_email == "b@example.com"

    def test_requires_invitee(self) -> None:
        with pytest.raises(ValidationError, match="invitedUserId or invitedEmail is required"):
            MemberInvite(role="MEMBER")


# ── Entities, documents, work items ──────────────────────────────────


class TestEnums:
    def test_entity_role(self) -> None:
        assert EntityCreate(name="Acme", role="SELF").role == EntityRole.SELF
        with pytest.raises(ValidationError):
            EntityCreate(name="Acme", role="PARTNER")

    def test_entity_requires_name(self) -> None:
        with pytest.raises(ValidationError):
            EntityCreate(name="", role="VENDOR")

    def test_priority(self) -> None:
        with pytest.raises(ValidationError):
            WorkItemCreate(
                work_item_type_id=uuid.uuid4(),
                entity_id=uuid.uuid4(),
                assigned_to_user_id=1,
                title="T",
                priority="URGENT",
            )
        assert WorkItemPriority("HIGH") == WorkItemPriority.HIGH

    def test_status_update_keeps_raw_value(self) -> None:
        assert WorkItemStatusUpdate(status="archived").status == "archived"

    def test_field_definition_type(self) -> None:
        with pytest.raises(ValidationError):
            FieldDefinition(field_key="k", label="K", field_type="boolean")

    def test_document_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            DocumentCreate(document_type_id=uuid.uuid4(), file_name="a.pdf", file_size=0)
