"""Authentication service — user management, signup and JWT tokens."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from worktrail.config import get_settings
from worktrail.errors import ValidationError
from worktrail.models.tenant import Tenant
from worktrail.models.user import User
from worktrail.models.workspace import DEFAULT_WORKSPACE_NAME, Workspace
from worktrail.models.workspace_member import WorkspaceMember, WorkspaceRole

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_user(db: Session, email: str, password: str, name: str | None = None) -> User:
    """Create a new user with hashed password."""
    user = User(email=normalize_email(email), name=name)
    user.set_password(password)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def signup(
    db: Session, email: str, password: str, name: str | None = None
) -> tuple[User, Workspace]:
    """Create a user with their own tenant and default workspace (as OWNER).

    All four rows are written in one transaction.
    """
    email = normalize_email(email)
    if get_user_by_email(db, email) is not None:
        raise ValidationError("User with this email already exists")

    user = User(email=email, name=name)
    user.set_password(password)
    tenant = Tenant(name=f"{email}'s Tenant")
    db.add_all([user, tenant])
    db.flush()

    workspace = Workspace(tenant_id=tenant.id, name=DEFAULT_WORKSPACE_NAME)
    db.add(workspace)
    db.flush()
    db.add(
        WorkspaceMember(
            workspace_id=workspace.id,
            user_id=user.id,
            role=WorkspaceRole.OWNER.value,
        )
    )
    db.commit()
    db.refresh(user)
    db.refresh(workspace)
    logger.info("Signed up user id=%s with workspace %s", user.id, workspace.id)
    return user, workspace


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Validate credentials and return user, or None if invalid."""
    user = get_user_by_email(db, email)
    if user is None:
        return None
    if not user.verify_password(password):
        return None
    return user


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.access_token_expire_hours)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_token_for_user(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "email": user.email})


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token. Returns payload or None."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def user_id_from_token(token: str) -> Optional[int]:
    """Return the ``sub`` claim as a user id, or None if the token is unusable."""
    payload = decode_access_token(token)
    if payload is None:
        return None
    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        return None


def get_user_from_token(db: Session, token: str) -> Optional[User]:
    """Extract user from a JWT token. Returns None if token invalid or user not found."""
    user_id = user_id_from_token(token)
    if user_id is None:
        return None
    return db.get(User, user_id)
