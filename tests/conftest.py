"""
Pytest configuration and fixtures.

Every test gets its own SQLite database file with the schema created from the
models, a fresh app wired to it, and a recording emitter in place of the
WebSocket hub.
"""

from __future__ import annotations

import itertools
import os
import uuid
from dataclasses import dataclass
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from tests.test_constants import TEST_PASSWORD, TEST_SECRET_KEY

# Set before worktrail is imported: settings are cached and the engine built at import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", TEST_SECRET_KEY)


class RecordingEmitter:
    """Stands in for WorkspaceEventHub; keeps every emitted event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict]] = []

    def emit(self, workspace_id: str, event: str, payload: dict) -> None:
        self.events.append((workspace_id, event, payload))

    def names(self) -> list[str]:
        return [event for _, event, _ in self.events]


@dataclass
class Actor:
    """A signed-up user with a token and their own default workspace."""

    user_id: int
    email: str
    token: str
    workspace_id: uuid.UUID

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def engine(tmp_path):
    import worktrail.models  # noqa: F401
    from worktrail.db.session import Base

    eng = create_engine(
        f"sqlite:///{tmp_path / 'worktrail_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Session:
    """Session for arranging data and asserting on it. Call expire_all() after API calls."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def app(session_factory, emitter):
    """Fresh application bound to the per-test database."""
    from worktrail.db.session import get_db
    from worktrail.main import create_app
    from worktrail.services.audit_log import AuditLogService
    from worktrail.services.idempotency import IdempotencyStore

    application = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    application.state.session_factory = session_factory
    application.state.event_hub = emitter
    application.state.audit_service = AuditLogService(session_factory, emitter)
    application.state.idempotency_store = IdempotencyStore(session_factory, timedelta(hours=24))
    return application


@pytest.fixture
def client(app) -> TestClient:
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def make_actor(db):
    """Factory: sign up a user (tenant, default workspace, OWNER membership)."""
    from worktrail.services.auth import create_token_for_user, signup

    counter = itertools.count(1)

    def _make(email: str | None = None) -> Actor:
        email = email or f"user{next(counter)}@example.com"
        user, workspace = signup(db, email, TEST_PASSWORD)
        return Actor(
            user_id=user.id,
            email=user.email,
            token=create_token_for_user(user),
            workspace_id=workspace.id,
        )

    return _make


@pytest.fixture
def owner(make_actor) -> Actor:
    return make_actor("owner@example.com")


@pytest.fixture
def add_member(db):
    """Factory: give ``actor`` a membership with ``role`` in ``workspace_id``."""
    from worktrail.models import WorkspaceMember

    def _add(workspace_id: uuid.UUID, actor: Actor, role) -> WorkspaceMember:
        membership = WorkspaceMember(
            workspace_id=workspace_id,
            user_id=actor.user_id,
            role=getattr(role, "value", role),
        )
        db.add(membership)
        db.commit()
        db.refresh(membership)
        return membership

    return _add


@pytest.fixture
def entity(db, owner):
    from worktrail.models import Entity, EntityRole

    row = Entity(workspace_id=owner.workspace_id, name="Acme Ltd", role=EntityRole.CUSTOMER.value)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def work_item_type(db, owner):
    from worktrail.models import WorkItemType

    row = WorkItemType(workspace_id=owner.workspace_id, name="Onboarding")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def work_item(db, owner, entity, work_item_type):
    """A DRAFT work item assigned to the owner."""
    from worktrail.models import WorkItem, WorkItemStatus

    row = WorkItem(
        workspace_id=owner.workspace_id,
        work_item_type_id=work_item_type.id,
        entity_id=entity.id,
        assigned_to_user_id=owner.user_id,
        title="Collect KYC documents",
        status=WorkItemStatus.DRAFT.value,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def document_type(db, owner):
    from worktrail.models import DocumentType

    row = DocumentType(
        workspace_id=owner.workspace_id,
        name="Contract",
        has_expiry=True,
        fields=[
            {"fieldKey": "contractNo", "label": "Contract number", "fieldType": "text", "isRequired": True},
        ],
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def document(db, owner, document_type):
    from worktrail.models import Document

    row = Document(
        workspace_id=owner.workspace_id,
        document_type_id=document_type.id,
        file_name="contract.pdf",
        file_size=1024,
        mime_type="application/pdf",
        metadata_={"contractNo": "C-1"},
        uploaded_by=owner.user_id,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
