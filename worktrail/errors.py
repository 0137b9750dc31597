"""Typed application errors and their HTTP translation.

Services raise these; the handlers registered by ``register_exception_handlers``
turn them into ``{"detail": ..., "error": ...}`` responses. Anything else that
escapes a handler is logged and answered with a generic 500.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(AppError):
    """Missing or invalid actor identity."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthorized"


class ForbiddenError(AppError):
    """Authenticated, but not allowed to act on this workspace or resource."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"


class ValidationError(AppError):
    """Malformed input or a violated business rule the caller can correct."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation"


class NotFoundError(AppError):
    """Referenced id does not exist in the resolved workspace."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ConflictError(AppError):
    """State changed between read and write; the caller should reload and retry."""

    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


def _handle_app_error(_request: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
        headers=headers,
    )


def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error": "internal"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error taxonomy handlers to the FastAPI app."""
    app.add_exception_handler(AppError, _handle_app_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
