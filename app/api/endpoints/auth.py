"""
Authentication endpoints for user registration, login, and token refresh.

Implements JWT-based stateless authentication:
- POST /register: Create new (unapproved) user account
- POST /login: Authenticate and receive JWT tokens
- POST /refresh: Get new access token using refresh token
- GET /me: Get current user profile
- POST /change-password: Set a new password (clears a forced reset)
"""

import logging
import uuid
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import verify_password, create_access_token, create_refresh_token, decode_token, password_policy_violations
from app.core.deps import get_current_user
from app.core.exceptions import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from app.crud import school_config as config_crud
from app.crud import user as user_crud
from app.models.user import User, UserRole
from app.schemas.user import (
    UserRegisterRequest,
    UserLoginRequest,
    TokenResponse,
    TokenRefreshRequest,
    PasswordChangeRequest,
    UserResponse,
    RegisterResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


def _issue_tokens(user: User, include_user: bool = True) -> TokenResponse:
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    refresh_token = create_refresh_token(data={"sub": str(user.id)})
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=UserResponse.model_validate(user) if include_user else None
    )


@router.post("/register", status_code=201, response_model=RegisterResponse)
def register(
    request: UserRegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new student, parent or teacher account.

    The account is created active but unapproved; an admin or moderator
    must approve it before the user can log in. The password is checked
    against the school's configured password policy.
    """
    if user_crud.get_by_email(db, request.email):
        raise ConflictError("Email already registered")

    policy = config_crud.get_security_settings(db).password_policy
    problems = password_policy_violations(request.password, policy)
    if problems:
        raise ValidationError(problems[0])

    profile = request.model_dump(exclude={"email", "password", "role"})
    new_user = user_crud.create(
        db,
        email=request.email,
        password=request.password,
        role=UserRole(request.role.value),
        approved=False,
        **profile
    )

    logger.info(f"New user registered: {new_user.email} (role: {new_user.role.value}, pending approval)")

    return RegisterResponse(
        message="Registration successful. Your account is pending approval.",
        user=UserResponse.model_validate(new_user)
    )


@router.post("/login", response_model=TokenResponse)
def login(
    request: UserLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return JWT tokens.

    Validates email/password, refuses inactive and unapproved accounts,
    and updates the last_login_at timestamp.
    """
    user = user_crud.get_by_email(db, request.username)
    if not user or not verify_password(request.password, user.hashed_password):
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        raise AuthorizationError("Account is inactive. Please contact the school office.")

    if not user.approved and user.role != UserRole.ADMIN:
        logger.info(f"Login refused for unapproved user: {user.email}")
        raise AuthorizationError("Account pending approval")

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()

    logger.info(f"User logged in: {user.email} (role: {user.role.value})")

    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: TokenRefreshRequest,
    db: Session = Depends(get_db)
):
    """
    Refresh access token using refresh token.

    Validates the refresh token and issues a new token pair.
    """
    try:
        payload = decode_token(request.refresh_token)
        user_id = payload.get("sub")
        if user_id is None or payload.get("type") != "refresh":
            raise AuthenticationError("Invalid refresh token")
        user_uuid = uuid.UUID(user_id)
    except (JWTError, ValueError) as e:
        logger.error(f"Token refresh error: {e}")
        raise AuthenticationError("Invalid or expired refresh token")

    # Verify user still exists and is active
    user = user_crud.get_by_id(db, user_uuid)
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    return _issue_tokens(user, include_user=False)


@router.get("/me", response_model=UserResponse)
def get_current_user_profile(
    current_user: User = Depends(get_current_user)
):
    """
    Get current authenticated user's profile.

    Pending users may call this to see their approval status.
    """
    return current_user


@router.post("/change-password", response_model=UserResponse)
def change_password(
    request: PasswordChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Change the caller's password.

    Open to accounts flagged by a forced reset, which are refused by every
    other portal endpoint until this succeeds. The new password must satisfy
    the school's password policy and differ from the current one.
    """
    if not verify_password(request.current_password, current_user.hashed_password):
        raise ValidationError("Current password is incorrect")

    if verify_password(request.new_password, current_user.hashed_password):
        raise ValidationError("New password must be different from the current password")

    policy = config_crud.get_security_settings(db).password_policy
    problems = password_policy_violations(request.new_password, policy)
    if problems:
        raise ValidationError(problems[0])

    user = user_crud.set_password(db, current_user, request.new_password)
    logger.info(f"Password changed for user: {user.id}")
    return user
