"""Workspace overview API route."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from worktrail.api.deps import WorkspaceIdPath, get_db, require_member
from worktrail.config import get_settings
from worktrail.models.workspace_member import WorkspaceMember
from worktrail.schemas.overview import WorkspaceOverview
from worktrail.services.overview import get_workspace_overview

# Mounted at /api/workspaces/{workspaceId}/overview
router = APIRouter()


@router.get("", response_model=WorkspaceOverview)
def workspace_overview_route(
    workspace_id: WorkspaceIdPath,
    db: Session = Depends(get_db),
    _member: WorkspaceMember = Depends(require_member),
) -> WorkspaceOverview:
    """Counts by entity role, document expiry and work item status, plus type summaries."""
    return get_workspace_overview(
        db, workspace_id, datetime.now(UTC).date(), get_settings().expiring_documents_days
    )
