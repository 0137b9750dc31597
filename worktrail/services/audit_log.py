"""Audit trail recording and querying.

``AuditLogService.log`` runs after the triggering operation has committed and
never raises: a failed write is rolled back and logged, and only a successful
write may be broadcast to the workspace's real-time subscribers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from worktrail.errors import ValidationError
from worktrail.models.audit_log import AuditAction, AuditLog

logger = logging.getLogger(__name__)

REALTIME_EVENTS: dict[AuditAction, str] = {
    AuditAction.WORK_ITEM_STATUS_CHANGED: "work-item:status-changed",
    AuditAction.WORK_ITEM_DOCUMENT_LINKED: "work-item:document-linked",
    AuditAction.WORK_ITEM_DOCUMENT_UNLINKED: "work-item:document-unlinked",
    AuditAction.DOCUMENT_UPLOADED: "document:uploaded",
    AuditAction.DOCUMENT_DELETED: "document:deleted",
    AuditAction.WORKSPACE_MEMBER_INVITED: "workspace:member-invited",
    AuditAction.WORKSPACE_MEMBER_ROLE_UPDATED: "workspace:member-updated",
    AuditAction.WORKSPACE_MEMBER_REMOVED: "workspace:member-removed",
}


class EventEmitter(Protocol):
    def emit(self, workspace_id: str, event: str, payload: dict[str, Any]) -> None: ...


class AuditLogService:
    """Append-only audit recorder with real-time fan-out."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        emitter: EventEmitter | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.emitter = emitter

    def log(
        self,
        workspace_id: UUID,
        user_id: int,
        action: AuditAction,
        target_type: str,
        target_id: Any = None,
    ) -> None:
        if not self._write(workspace_id, user_id, action, target_type, target_id):
            return
        event = REALTIME_EVENTS.get(action)
        if event is None or self.emitter is None:
            return
        payload = {
            "targetId": str(target_id) if target_id is not None else None,
            "targetType": target_type,
            "workspaceId": str(workspace_id),
        }
        try:
            self.emitter.emit(str(workspace_id), event, payload)
        except Exception:
            logger.exception("Real-time emit failed for %s in workspace %s", event, workspace_id)

    def _write(
        self,
        workspace_id: UUID,
        user_id: int,
        action: AuditAction,
        target_type: str,
        target_id: Any,
    ) -> bool:
        try:
            with self.session_factory() as db:
                db.add(
                    AuditLog(
                        workspace_id=workspace_id,
                        user_id=user_id,
                        action=action.value,
                        target_type=target_type,
                        target_id=str(target_id) if target_id is not None else None,
                    )
                )
                db.commit()
            return True
        except Exception:
            logger.exception(
                "Audit write failed: action=%s workspace=%s target=%s",
                action.value,
                workspace_id,
                target_id,
            )
            return False


# ── Query ────────────────────────────────────────────────────────────


@dataclass
class AuditLogFilters:
    user_id: int | None = None
    action: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None


def parse_iso_datetime(value: str | None, name: str) -> datetime | None:
    """Parse an ISO-8601 date or datetime query value; ``None`` passes through."""
    if value is None or value == "":
        return None
    try:
        # Accept a trailing Z on Python versions whose parser does not
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {name}: must be an ISO-8601 date") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return parsed


def query_audit_logs(
    db: Session,
    workspace_id: UUID,
    filters: AuditLogFilters,
    limit: int,
    offset: int,
) -> tuple[list[AuditLog], int]:
    """Return one page of entries (newest first) and the total under the same filters."""
    query = db.query(AuditLog).filter(AuditLog.workspace_id == workspace_id)
    if filters.user_id is not None:
        query = query.filter(AuditLog.user_id == filters.user_id)
    if filters.action:
        query = query.filter(AuditLog.action == filters.action)
    if filters.target_type:
        query = query.filter(AuditLog.target_type == filters.target_type)
    if filters.target_id:
        query = query.filter(AuditLog.target_id == filters.target_id)
    if filters.from_date is not None:
        query = query.filter(AuditLog.created_at >= filters.from_date)
    if filters.to_date is not None:
        query = query.filter(AuditLog.created_at <= filters.to_date)

    total = query.count()
    logs = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return logs, total
