"""Audit log query API (OWNER/ADMIN only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from worktrail.api.deps import WorkspaceIdPath, get_db, require_admin
from worktrail.config import get_settings
from worktrail.errors import ValidationError
from worktrail.models.workspace_member import WorkspaceMember
from worktrail.schemas.audit_log import AuditLogPage, AuditLogRead
from worktrail.services.audit_log import AuditLogFilters, parse_iso_datetime, query_audit_logs

router = APIRouter()


@router.get(
    "",
    response_model=AuditLogPage,
    summary="Query the workspace audit trail",
    description="""Entries newest-first with a total computed under the same filters.

`fromDate`/`toDate` are ISO-8601; an unparseable value returns 400.
""",
)
def list_audit_logs_route(
    workspace_id: WorkspaceIdPath,
    user_id: int | None = Query(None, alias="userId"),
    action: str | None = Query(None),
    target_type: str | None = Query(None, alias="targetType"),
    target_id: str | None = Query(None, alias="targetId"),
    from_date: str | None = Query(None, alias="fromDate"),
    to_date: str | None = Query(None, alias="toDate"),
    limit: int | None = Query(None),
    offset: int = Query(0),
    db: Session = Depends(get_db),
    _admin: WorkspaceMember = Depends(require_admin),
) -> AuditLogPage:
    settings = get_settings()
    if limit is None:
        limit = settings.audit_log_default_limit
    if limit < 1 or limit > settings.audit_log_max_limit:
        raise ValidationError(f"limit must be between 1 and {settings.audit_log_max_limit}")
    if offset < 0:
        raise ValidationError("offset must be zero or greater")

    filters = AuditLogFilters(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        from_date=parse_iso_datetime(from_date, "fromDate"),
        to_date=parse_iso_datetime(to_date, "toDate"),
    )
    logs, total = query_audit_logs(db, workspace_id, filters, limit, offset)
    return AuditLogPage(
        total=total,
        limit=limit,
        offset=offset,
        logs=[AuditLogRead.model_validate(entry) for entry in logs],
    )
