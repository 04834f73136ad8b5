"""
Pydantic schemas for the admin verification-code endpoints.
"""

from pydantic import BaseModel, Field, UUID4
from typing import Any, List, Optional
from datetime import datetime


class VerifyAdminCodeRequest(BaseModel):
    """
    Body of POST /admin/verify-code.

    The code is deliberately loosely typed: format problems are reported
    (and logged) by the verification gate, not rejected by request parsing.
    """
    verification_code: Optional[Any] = Field(None, alias="verificationCode")

    class Config:
        populate_by_name = True


class VerifiedAdmin(BaseModel):
    name: str
    role: str


class VerifyAdminCodeResponse(BaseModel):
    """Successful verification"""
    success: bool = True
    admin: VerifiedAdmin


class IssueCodeRequest(BaseModel):
    """
    System-owner request to issue a verification code for an admin.

    When verification_code is omitted a random code is generated.
    """
    admin_id: UUID4
    verification_code: Optional[str] = Field(None, pattern=r"^[A-Z0-9]{6,20}$")
    expires_at: Optional[datetime] = None
    deactivate_existing: bool = True


class VerificationCodeResponse(BaseModel):
    id: UUID4
    admin_id: UUID4
    verification_code: str
    is_active: bool
    created_at: datetime
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VerificationAttemptResponse(BaseModel):
    id: UUID4
    verification_code: str
    success: bool
    failure_reason: Optional[str] = None
    attempted_at: datetime

    class Config:
        from_attributes = True


class VerificationOverview(BaseModel):
    """An admin's own codes plus their most recent attempts"""
    codes: List[VerificationCodeResponse]
    recent_attempts: List[VerificationAttemptResponse]
