"""
Admin verification gate.

Admins present a secondary verification code, on top of their normal login,
to unlock the admin screens. This module decides whether a presented code
authorizes continued admin access and keeps the attempt audit trail.

Codes are issued by the system owner, may carry an expiry, and are reusable
until deactivated: a successful check only stamps last_used_at.
"""

import logging
import re
import secrets
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import as_utc
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ExpiredCodeError,
    InvalidCodeError,
    NotFoundError,
    ValidationError,
)
from app.models.admin_verification import AdminVerificationAttempt, AdminVerificationCode
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(settings.VERIFICATION_CODE_PATTERN)
CODE_ALPHABET = string.ascii_uppercase + string.digits

# Values stored in AdminVerificationAttempt.failure_reason
FAILURE_INVALID_FORMAT = "invalid_format"
FAILURE_INVALID_CODE = "invalid_code"
FAILURE_EXPIRED_CODE = "expired_code"


def generate_admin_code(length: int = None) -> str:
    """
    Generate a random verification code from the allowed alphabet.

    Uses the secrets module so codes cannot be predicted.
    """
    length = length or settings.GENERATED_CODE_LENGTH
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def is_valid_code_format(code: str) -> bool:
    """True when code is 6-20 uppercase letters/digits."""
    return CODE_PATTERN.fullmatch(code) is not None


def _record_attempt(
    db: Session,
    admin_id: uuid.UUID,
    submitted: str,
    success: bool,
    failure_reason: Optional[str] = None,
) -> AdminVerificationAttempt:
    attempt = AdminVerificationAttempt(
        admin_id=admin_id,
        verification_code=submitted,
        success=success,
        failure_reason=failure_reason,
        attempted_at=datetime.now(timezone.utc),
    )
    db.add(attempt)
    return attempt


def verify_admin_code(db: Session, admin: User, submitted: Any) -> Dict[str, str]:
    """
    Check a submitted verification code for an authenticated admin.

    Checks, in order:
    - caller must be an admin (no attempt logged)
    - code must be a non-empty string (no attempt logged)
    - code must match ^[A-Z0-9]{6,20}$ (failed attempt logged)
    - an active code row for this admin must match (failed attempt logged)
    - the matched code must not be expired (failed attempt logged)

    On success last_used_at is stamped and a successful attempt is logged.
    Exactly one attempt row is written for every call that reaches the
    format check.

    Args:
        db: Database session
        admin: Authenticated caller
        submitted: Raw code from the request body

    Returns:
        {"name": display name, "role": role}

    Raises:
        AuthorizationError: Caller is not an admin
        ValidationError: Missing or malformed code
        InvalidCodeError: No active code matches
        ExpiredCodeError: Matching code has expired
    """
    if admin.role != UserRole.ADMIN:
        raise AuthorizationError("Access denied. Admin privileges required.")

    if not submitted or not isinstance(submitted, str):
        raise ValidationError("Invalid verification code format")

    if not is_valid_code_format(submitted):
        _record_attempt(db, admin.id, submitted, False, FAILURE_INVALID_FORMAT)
        db.commit()
        logger.info("Malformed verification code", extra={"user_id": str(admin.id), "role": admin.role.value})
        raise ValidationError("Invalid code format")

    now = datetime.now(timezone.utc)
    candidates = db.query(AdminVerificationCode).filter(
        AdminVerificationCode.admin_id == admin.id,
        AdminVerificationCode.verification_code == submitted,
        AdminVerificationCode.is_active == True
    ).order_by(AdminVerificationCode.created_at.desc()).all()

    if not candidates:
        _record_attempt(db, admin.id, submitted, False, FAILURE_INVALID_CODE)
        db.commit()
        logger.info("Invalid verification code", extra={"user_id": str(admin.id), "role": admin.role.value})
        raise InvalidCodeError()

    live = [c for c in candidates if c.expires_at is None or as_utc(c.expires_at) > now]
    if not live:
        _record_attempt(db, admin.id, submitted, False, FAILURE_EXPIRED_CODE)
        db.commit()
        logger.info("Expired verification code", extra={"user_id": str(admin.id), "role": admin.role.value})
        raise ExpiredCodeError()

    matched = live[0]
    matched.last_used_at = now
    _record_attempt(db, admin.id, submitted, True)
    db.commit()

    logger.info(
        f"Admin verified successfully: {admin.display_name}",
        extra={"user_id": str(admin.id), "role": admin.role.value, "code_id": str(matched.id)}
    )
    return {"name": admin.display_name, "role": admin.role.value}


def issue_admin_code(
    db: Session,
    admin_id: uuid.UUID,
    issued_by: User,
    code: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    deactivate_existing: bool = True,
) -> AdminVerificationCode:
    """
    Issue a verification code for an admin.

    Args:
        db: Database session
        admin_id: Admin who will use the code
        issued_by: System owner issuing it
        code: Explicit code value; generated when omitted
        expires_at: Optional expiry (must be in the future)
        deactivate_existing: Deactivate the admin's other active codes first

    Returns:
        AdminVerificationCode: The new active code
    """
    admin = db.query(User).filter(User.id == admin_id).first()
    if admin is None:
        raise NotFoundError("Admin not found")
    if admin.role != UserRole.ADMIN:
        raise ValidationError("Verification codes can only be issued to admins")

    code = code or generate_admin_code()
    if not is_valid_code_format(code):
        raise ValidationError("Invalid code format")

    if expires_at is not None and as_utc(expires_at) <= datetime.now(timezone.utc):
        raise ValidationError("Expiry must be in the future")

    active = db.query(AdminVerificationCode).filter(
        AdminVerificationCode.admin_id == admin_id,
        AdminVerificationCode.is_active == True
    )
    if deactivate_existing:
        active.update({"is_active": False})
    elif active.filter(AdminVerificationCode.verification_code == code).first():
        raise ConflictError("This admin already has an active code with that value")

    verification = AdminVerificationCode(
        admin_id=admin_id,
        verification_code=code,
        is_active=True,
        expires_at=expires_at,
        created_at=datetime.now(timezone.utc),
        created_by=issued_by.id,
    )
    db.add(verification)
    db.commit()
    db.refresh(verification)

    logger.info(f"Verification code issued for admin {admin_id} by {issued_by.id}")
    return verification


def deactivate_code(db: Session, code_id: uuid.UUID, actor: User) -> AdminVerificationCode:
    """
    Turn a code off. Admins may deactivate their own codes; the system owner
    may deactivate anyone's.
    """
    verification = db.query(AdminVerificationCode).filter(AdminVerificationCode.id == code_id).first()
    if verification is None or (verification.admin_id != actor.id and not actor.is_system_owner):
        raise NotFoundError("Verification code not found")

    verification.is_active = False
    db.commit()
    db.refresh(verification)

    logger.info("Verification code deactivated", extra={"user_id": str(actor.id), "code_id": str(code_id)})
    return verification


def list_codes(db: Session, admin_id: uuid.UUID) -> List[AdminVerificationCode]:
    """An admin's codes, newest first."""
    return db.query(AdminVerificationCode).filter(
        AdminVerificationCode.admin_id == admin_id
    ).order_by(AdminVerificationCode.created_at.desc()).all()


def recent_attempts(db: Session, admin_id: uuid.UUID, limit: int = None) -> List[AdminVerificationAttempt]:
    """An admin's most recent verification attempts, newest first."""
    return db.query(AdminVerificationAttempt).filter(
        AdminVerificationAttempt.admin_id == admin_id
    ).order_by(AdminVerificationAttempt.attempted_at.desc()).limit(limit or settings.RECENT_ATTEMPTS_LIMIT).all()


def count_active_codes(db: Session) -> int:
    return db.query(AdminVerificationCode).filter(AdminVerificationCode.is_active == True).count()


def purge_attempts(db: Session, older_than_days: int = None) -> int:
    """
    Delete attempt rows older than the retention window.

    This is the only path that removes attempt rows; it is exposed to the
    system owner as the purge_old_logs action.

    Returns:
        int: Number of rows deleted
    """
    days = older_than_days if older_than_days is not None else settings.ATTEMPT_LOG_RETENTION_DAYS
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)

    deleted = db.query(AdminVerificationAttempt).filter(
        AdminVerificationAttempt.attempted_at < cutoff
    ).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Purged {deleted} verification attempts older than {days} days")
    return deleted
