"""
Admin verification-code endpoints.

- POST /admin/verify-code: check a code and unlock the admin screens
- GET /admin/verification-codes: caller's codes and recent attempts
- POST /admin/verification-codes: issue a code (system owner)
- POST /admin/verification-codes/{code_id}/deactivate: turn a code off
"""

import logging
from typing import Any, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import admin_verification
from app.core.database import get_db
from app.core.deps import get_admin_user, get_current_user, get_system_owner
from app.core.exceptions import PortalError, error_response
from app.models.user import User
from app.schemas.verification import (
    IssueCodeRequest,
    VerificationAttemptResponse,
    VerificationCodeResponse,
    VerificationOverview,
    VerifyAdminCodeRequest,
    VerifyAdminCodeResponse,
)

router = APIRouter(prefix="/admin", tags=["Admin Verification"])
logger = logging.getLogger(__name__)


async def read_submitted_code(request: Request) -> Optional[Any]:
    """
    Pull verificationCode out of the JSON body.

    Declared after the auth dependency so that an unauthenticated caller
    gets 401 even when the body is not JSON. A body that cannot be parsed
    counts as a missing code.
    """
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return VerifyAdminCodeRequest.model_validate(body).verification_code


@router.post(
    "/verify-code",
    response_model=VerifyAdminCodeResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": VerifyAdminCodeRequest.model_json_schema(by_alias=True)}},
        }
    },
)
def verify_code(
    current_user: User = Depends(get_current_user),
    submitted: Optional[Any] = Depends(read_submitted_code),
    db: Session = Depends(get_db)
):
    """
    Verify an admin's secondary verification code.

    Responses:
        200: {"success": true, "admin": {"name": ..., "role": "admin"}}
        400: malformed code
        401: missing credential, invalid or expired code
        403: caller is not an admin
        500: storage failure (no detail exposed)
    """
    try:
        admin = admin_verification.verify_admin_code(db, current_user, submitted)
    except PortalError as e:
        return error_response(e.status_code, e.message)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Verification code check failed for user {current_user.id}")
        return error_response(500, "Internal server error")

    return VerifyAdminCodeResponse(success=True, admin=admin)


@router.get("/verification-codes", response_model=VerificationOverview)
def get_verification_overview(
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """List the caller's codes (newest first) and their most recent attempts."""
    codes = admin_verification.list_codes(db, admin_user.id)
    attempts = admin_verification.recent_attempts(db, admin_user.id)
    return VerificationOverview(
        codes=[VerificationCodeResponse.model_validate(c) for c in codes],
        recent_attempts=[VerificationAttemptResponse.model_validate(a) for a in attempts]
    )


@router.post("/verification-codes", status_code=201, response_model=VerificationCodeResponse)
def issue_verification_code(
    request: IssueCodeRequest,
    owner: User = Depends(get_system_owner),
    db: Session = Depends(get_db)
):
    """
    Issue a verification code for an admin.

    A random code is generated when none is given. By default the admin's
    previous active codes are deactivated.
    """
    return admin_verification.issue_admin_code(
        db,
        admin_id=request.admin_id,
        issued_by=owner,
        code=request.verification_code,
        expires_at=request.expires_at,
        deactivate_existing=request.deactivate_existing,
    )


@router.post("/verification-codes/{code_id}/deactivate", response_model=VerificationCodeResponse)
def deactivate_verification_code(
    code_id: UUID,
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Deactivate one of the caller's codes (or any code, for the system owner)."""
    return admin_verification.deactivate_code(db, code_id, admin_user)
