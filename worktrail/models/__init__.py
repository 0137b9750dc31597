"""SQLAlchemy models."""

from worktrail.models.audit_log import AuditAction, AuditLog
from worktrail.models.document import Document, ExpiryStatus
from worktrail.models.document_type import DocumentType, FieldType
from worktrail.models.entity import Entity, EntityRole
from worktrail.models.idempotency_record import IdempotencyRecord
from worktrail.models.tenant import Tenant
from worktrail.models.user import User
from worktrail.models.work_item import WorkItem, WorkItemPriority, WorkItemStatus
from worktrail.models.work_item_document import WorkItemDocument
from worktrail.models.work_item_type import WorkItemType
from worktrail.models.workspace import Workspace
from worktrail.models.workspace_member import WorkspaceMember, WorkspaceRole

__all__ = [
    "AuditAction",
    "AuditLog",
    "Document",
    "DocumentType",
    "Entity",
    "EntityRole",
    "ExpiryStatus",
    "FieldType",
    "IdempotencyRecord",
    "Tenant",
    "User",
    "WorkItem",
    "WorkItemDocument",
    "WorkItemPriority",
    "WorkItemStatus",
    "WorkItemType",
    "Workspace",
    "WorkspaceMember",
    "WorkspaceRole",
]
