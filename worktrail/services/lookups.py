"""Narrow lookup interfaces used across feature services.

Work items need to find entities and documents without depending on the
entity or document services. Anything with a matching ``find_by_id`` will do;
the SQLAlchemy-backed implementations below are the defaults.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from worktrail.models.document import Document
from worktrail.models.entity import Entity


class EntityLookup(Protocol):
    def find_by_id(self, entity_id: UUID, workspace_id: UUID) -> Entity | None: ...


class DocumentLookup(Protocol):
    def find_by_id(self, document_id: UUID, workspace_id: UUID) -> Document | None: ...


class SqlEntityLookup:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, entity_id: UUID, workspace_id: UUID) -> Entity | None:
        return (
            self.db.query(Entity)
            .filter(Entity.id == entity_id, Entity.workspace_id == workspace_id)
            .first()
        )


class SqlDocumentLookup:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, document_id: UUID, workspace_id: UUID) -> Document | None:
        return (
            self.db.query(Document)
            .filter(Document.id == document_id, Document.workspace_id == workspace_id)
            .first()
        )
