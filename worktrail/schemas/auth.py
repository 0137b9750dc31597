"""Authentication schemas."""

from __future__ import annotations

from pydantic import Field

from worktrail.schemas.common import CamelModel


class SignupRequest(CamelModel):
    """Schema for account creation."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8)
    name: str | None = Field(None, max_length=255)


class SignupResponse(CamelModel):
    user_id: int
    workspace_id: str
    token: str


class LoginRequest(CamelModel):
    """Schema for login credentials."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class TokenResponse(CamelModel):
    """Schema for JWT token response."""

    access_token: str
    token_type: str = "bearer"


class UserRead(CamelModel):
    """Schema for reading user info (response)."""

    id: int
    email: str
    name: str | None = None
