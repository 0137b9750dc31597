"""
Worktrail FastAPI application entry point.

Request flow for mutating calls: idempotency cache -> role gate -> service ->
audit log (-> real-time event).
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from worktrail import __version__
from worktrail.config import get_settings
from worktrail.db.session import SessionLocal, check_db_connection, engine
from worktrail.errors import register_exception_handlers
from worktrail.services.audit_log import AuditLogService
from worktrail.services.idempotency import IdempotencyStore
from worktrail.services.realtime import WorkspaceEventHub

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("Worktrail starting")
    try:
        try:
            check_db_connection()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise
        yield
    finally:
        logger.info("Worktrail shutting down")
        engine.dispose()
        logger.info("Database connection pool closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    if not settings.secret_key:
        logger.warning("SECRET_KEY is not set; issued tokens are not secure")

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url] if settings.frontend_url else ["*"],
        allow_credentials=bool(settings.frontend_url),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Collaborators shared by all requests; tests replace them per app instance
    app.state.session_factory = SessionLocal
    app.state.event_hub = WorkspaceEventHub()
    app.state.audit_service = AuditLogService(SessionLocal, app.state.event_hub)
    app.state.idempotency_store = IdempotencyStore(
        SessionLocal, timedelta(hours=settings.idempotency_ttl_hours)
    )

    # Mount API routes
    from worktrail.api import (
        audit_logs,
        document_types,
        documents,
        entities,
        overview,
        work_items,
        workspaces,
    )
    from worktrail.api.auth import router as auth_router
    from worktrail.api.realtime import router as realtime_router

    ws_prefix = "/api/workspaces/{workspaceId}"

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(workspaces.router, prefix="/api/workspaces", tags=["workspaces"])
    app.include_router(workspaces.idempotent_router, prefix="/api/workspaces", tags=["workspaces"])
    app.include_router(entities.router, prefix=f"{ws_prefix}/entities", tags=["entities"])
    app.include_router(entities.idempotent_router, prefix=f"{ws_prefix}/entities", tags=["entities"])
    app.include_router(
        work_items.by_entity_router, prefix=f"{ws_prefix}/entities", tags=["work-items"]
    )
    app.include_router(
        document_types.router, prefix=f"{ws_prefix}/document-types", tags=["document-types"]
    )
    app.include_router(
        document_types.idempotent_router,
        prefix=f"{ws_prefix}/document-types",
        tags=["document-types"],
    )
    app.include_router(documents.router, prefix=f"{ws_prefix}/documents", tags=["documents"])
    app.include_router(
        documents.idempotent_router, prefix=f"{ws_prefix}/documents", tags=["documents"]
    )
    app.include_router(
        work_items.types_router, prefix=f"{ws_prefix}/work-item-types", tags=["work-items"]
    )
    app.include_router(
        work_items.types_idempotent_router,
        prefix=f"{ws_prefix}/work-item-types",
        tags=["work-items"],
    )
    app.include_router(work_items.router, prefix=f"{ws_prefix}/work-items", tags=["work-items"])
    app.include_router(
        work_items.idempotent_router, prefix=f"{ws_prefix}/work-items", tags=["work-items"]
    )
    app.include_router(overview.router, prefix=f"{ws_prefix}/overview", tags=["overview"])
    app.include_router(audit_logs.router, prefix=f"{ws_prefix}/audit-logs", tags=["audit-logs"])
    app.include_router(realtime_router, tags=["realtime"])

    @app.get("/health")
    def health():
        """Health check endpoint. Confirms DB connectivity."""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "ok",
                "version": __version__,
                "database": "connected",
            }
        except Exception:
            logger.warning("Health check: database unreachable", exc_info=True)
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": __version__,
                    "database": "disconnected",
                },
            )

    return app


app = create_app()
