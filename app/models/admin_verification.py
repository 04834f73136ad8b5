"""
Admin verification codes and the attempt audit log.

A verification code is a secondary shared secret an admin must present,
on top of normal login, to unlock the admin screens. Codes are issued by the
system owner, reusable until deactivated or expired, and every verification
try is appended to admin_verification_attempts.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Uuid
from app.core.database import Base, utcnow


class AdminVerificationCode(Base):
    """
    Verification code belonging to exactly one admin.

    Only mutated to stamp last_used_at after a successful check or to flip
    is_active off. Never deleted during normal operation.
    """
    __tablename__ = "admin_verification_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    admin_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    verification_code = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    expires_at = Column(DateTime(timezone=True), nullable=True)  # None = never expires
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        Index('ix_admin_verification_codes_lookup', 'admin_id', 'verification_code', 'is_active'),
    )

    def __repr__(self):
        return f"<AdminVerificationCode(admin_id={self.admin_id}, active={self.is_active}, expires_at={self.expires_at})>"


class AdminVerificationAttempt(Base):
    """
    Append-only record of one verification try, successful or not.

    failure_reason is one of "invalid_format", "invalid_code",
    "expired_code", or None for a successful attempt.
    """
    __tablename__ = "admin_verification_attempts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    admin_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    verification_code = Column(String, nullable=False)
    success = Column(Boolean, nullable=False, default=False)
    failure_reason = Column(String(32), nullable=True)
    attempted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<AdminVerificationAttempt(admin_id={self.admin_id}, success={self.success})>"
