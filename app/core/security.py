"""
Security utilities for JWT authentication and password hashing.

Implements stateless JWT authentication signed with the configured secret.
Passwords are hashed using bcrypt for security.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from app.core.config import settings

# Password hashing context (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    # Bcrypt has a 72-byte limit - truncate if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    return pwd_context.verify(password_bytes, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Note: Bcrypt has a 72-byte limit. Passwords longer than 72 bytes
    are automatically truncated to comply with this limitation.
    """
    password_bytes = password.encode('utf-8')[:72]
    return pwd_context.hash(password_bytes)


def password_policy_violations(password: str, policy) -> List[str]:
    """
    Check a password against the school's configured password policy.

    Args:
        password: Candidate password
        policy: PasswordPolicy settings object

    Returns:
        List of human-readable violations (empty when the password passes)
    """
    problems = []
    if len(password) < policy.min_length:
        problems.append(f"Password must be at least {policy.min_length} characters long")
    if len(password.encode('utf-8')) > 72:
        problems.append("Password cannot exceed 72 bytes (bcrypt limitation)")
    if policy.require_lowercase and not re.search(r'[a-z]', password):
        problems.append("Password must contain at least one lowercase letter")
    if policy.require_uppercase and not re.search(r'[A-Z]', password):
        problems.append("Password must contain at least one uppercase letter")
    if policy.require_numbers and not re.search(r'\d', password):
        problems.append("Password must contain at least one number")
    if policy.require_special_chars and not re.search(r'[!@#$%^&*(),.?":{}|<>]', password):
        problems.append("Password must contain at least one special character")
    return problems


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary containing claims to encode (typically {"sub": user_id, "role": role})
        expires_delta: Optional expiration time delta (default: ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token as a string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token with longer expiration."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT token.

    Raises:
        JWTError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        raise
