"""Authentication API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from worktrail.api.deps import AUTH_COOKIE, get_db, require_auth
from worktrail.config import get_settings
from worktrail.errors import UnauthorizedError
from worktrail.models.user import User
from worktrail.schemas.auth import (
    LoginRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UserRead,
)
from worktrail.schemas.common import MessageResponse
from worktrail.services.auth import authenticate_user, create_token_for_user, signup

router = APIRouter()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup_user(body: SignupRequest, db: Session = Depends(get_db)) -> SignupResponse:
    """Create an account with its own tenant and default workspace."""
    user, workspace = signup(db, body.email, body.password, body.name)
    return SignupResponse(
        user_id=user.id,
        workspace_id=str(workspace.id),
        token=create_token_for_user(user),
    )


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """Authenticate user and return JWT token.

    Also sets an httponly cookie for browser sessions.
    """
    user = authenticate_user(db, body.email, body.password)
    if user is None:
        raise UnauthorizedError("Invalid email or password")

    token = create_token_for_user(user)

    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=60 * 60 * get_settings().access_token_expire_hours,
        path="/",
    )

    return TokenResponse(access_token=token)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Clear the authentication cookie."""
    response.delete_cookie(key=AUTH_COOKIE, path="/")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(require_auth)) -> UserRead:
    """Return the currently authenticated user's information."""
    return UserRead.model_validate(current_user)
