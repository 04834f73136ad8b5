"""
FastAPI dependencies for authentication and authorization.

These dependencies are used to protect endpoints and extract user context.
They raise AuthenticationError (401) and AuthorizationError (403), which the
handler in main.py renders as the standard error envelope.
"""

import logging
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from typing import Callable, Optional
from uuid import UUID

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.security import decode_token
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme (Authorization: Bearer <token>)
# auto_error is off so a missing header maps to our own 401
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Extract and validate the current user from the JWT access token.

    This dependency:
    1. Extracts the Bearer token from Authorization header
    2. Decodes and validates the JWT
    3. Fetches the user from the database
    4. Ensures the user is active

    Raises:
        AuthenticationError: Missing header, invalid token, or unknown user
        AuthorizationError: Account deactivated
    """
    if credentials is None:
        raise AuthenticationError("Missing authorization header")

    try:
        payload = decode_token(credentials.credentials)
        user_id = payload.get("sub")
        if user_id is None or payload.get("type") != "access":
            raise AuthenticationError()
        user_uuid = UUID(user_id)
    except (JWTError, ValueError):
        raise AuthenticationError()

    user = db.query(User).filter(User.id == user_uuid).first()
    if user is None:
        raise AuthenticationError()

    if not user.is_active:
        raise AuthorizationError("User account is inactive")

    return user


def _ensure_password_current(user: User) -> None:
    # Set by the reset_all_passwords system action; cleared by POST /auth/change-password
    if user.password_reset_required:
        raise AuthorizationError("Password change required")


async def get_approved_user(
    user: User = Depends(get_current_user),
) -> User:
    """
    Get the current user and ensure their account has been approved.

    Admins never need approval. Use this for every portal feature; /auth/me
    stays on get_current_user so pending users can see their own status.
    Accounts flagged by a forced password reset are refused until they
    change their password.
    """
    if not user.approved and user.role != UserRole.ADMIN:
        raise AuthorizationError("Account pending approval")
    _ensure_password_current(user)
    return user


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that only lets the given roles through.

    Usage:
        @router.post("/classes")
        def create_class(user: User = Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))):
            ...
    """
    allowed = set(roles)

    async def role_checker(user: User = Depends(get_approved_user)) -> User:
        if user.role not in allowed:
            logger.info(f"Access denied for user {user.id} (role: {user.role.value})")
            raise AuthorizationError("Access denied. Insufficient privileges.")
        return user

    return role_checker


async def get_admin_user(
    user: User = Depends(get_current_user),
) -> User:
    """
    Require the admin role.

    Raises:
        AuthorizationError: Caller is not an admin
    """
    if user.role != UserRole.ADMIN:
        logger.info(f"Access denied for user: {user.id}, role: {user.role.value}")
        raise AuthorizationError("Access denied. Admin privileges required.")
    _ensure_password_current(user)
    return user


get_staff_user = require_roles(UserRole.ADMIN, UserRole.MODERATOR)


async def get_system_owner(
    user: User = Depends(get_admin_user),
) -> User:
    """
    Require the system-owner permission for destructive operations.

    Ownership is an explicit flag on the account, never inferred from names.
    """
    if not user.is_system_owner:
        logger.warning(f"Admin {user.id} attempted a system-owner operation")
        raise AuthorizationError("Access denied. System owner privileges required.")
    return user
