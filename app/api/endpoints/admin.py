"""
Admin API endpoints for user management, backups and system control.

Admins and moderators manage accounts and approvals; destructive operations
(deleting users, toggling system ownership, purging logs, mass password
resets) additionally require the system-owner permission.
"""

import logging
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_admin_user, get_staff_user, get_system_owner
from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.crud import school_class as class_crud
from app.crud import user as user_crud
from app.models.user import User, UserRole
from app.schemas.attendance import ParentLinkRequest, ChildResponse
from app.schemas.backup import (
    DESTRUCTIVE_ACTIONS,
    BackupCreateResponse,
    BackupResponse,
    SystemAction,
    SystemControlRequest,
    SystemControlResponse,
)
from app.schemas.user import (
    AdminUserCreateRequest,
    SystemOwnerUpdateRequest,
    UserResponse,
    UserUpdateRequest,
)
from app.services import backup_service, system_control

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)

# Roles a moderator may not grant or manage
PRIVILEGED_ROLES = {UserRole.ADMIN, UserRole.MODERATOR}


def _get_user_or_404(db: Session, user_id: UUID) -> User:
    user = user_crud.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _check_can_manage(staff_user: User, user: User) -> None:
    # Moderators only manage students, teachers and parents
    if staff_user.role != UserRole.ADMIN and user.role in PRIVILEGED_ROLES:
        raise AuthorizationError("Access denied. Admin privileges required.")


@router.get("/users", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = None,
    approved: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    staff_user: User = Depends(get_staff_user)
):
    """List users, optionally filtered by role and approval state."""
    return user_crud.get_multi(db, skip=skip, limit=limit, role=role, approved=approved)


@router.get("/users/pending", response_model=List[UserResponse])
def list_pending_users(
    db: Session = Depends(get_db),
    staff_user: User = Depends(get_staff_user)
):
    """Registrations waiting for approval, oldest first."""
    return user_crud.get_pending(db)


@router.post("/users", status_code=201, response_model=UserResponse)
def create_user(
    request: AdminUserCreateRequest,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
):
    """Create an account directly; admin-created accounts are approved by default."""
    if user_crud.get_by_email(db, request.email):
        raise ConflictError("Email already registered")

    profile = request.model_dump(exclude={"email", "password", "role", "approved"})
    user = user_crud.create(
        db,
        email=request.email,
        password=request.password,
        role=request.role,
        approved=request.approved,
        **profile
    )
    logger.info(f"Admin {admin_user.id} created user {user.email} (role: {user.role.value})")
    return user


@router.post("/users/{user_id}/approve", response_model=UserResponse)
def approve_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    staff_user: User = Depends(get_staff_user)
):
    user = _get_user_or_404(db, user_id)
    _check_can_manage(staff_user, user)
    user = user_crud.approve(db, user)
    logger.info(f"User {user.email} approved by {staff_user.id}")
    return user


@router.post("/users/{user_id}/reject", response_model=UserResponse)
def reject_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    staff_user: User = Depends(get_staff_user)
):
    """Reject a registration. The account is kept but deactivated."""
    user = _get_user_or_404(db, user_id)
    _check_can_manage(staff_user, user)
    if user.role == UserRole.ADMIN:
        raise ValidationError("Admin accounts cannot be rejected")
    user = user_crud.reject(db, user)
    logger.info(f"User {user.email} rejected by {staff_user.id}")
    return user


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    request: UserUpdateRequest,
    db: Session = Depends(get_db),
    staff_user: User = Depends(get_staff_user)
):
    """
    Update profile fields.

    Moderators cannot edit admin or moderator accounts, nor grant those roles.
    """
    user = _get_user_or_404(db, user_id)
    changes = request.model_dump(exclude_unset=True)

    _check_can_manage(staff_user, user)
    if staff_user.role != UserRole.ADMIN and changes.get("role") in PRIVILEGED_ROLES:
        raise AuthorizationError("Access denied. Admin privileges required.")

    try:
        user = user_crud.update(db, user, changes)
    except IntegrityError:
        db.rollback()
        raise ConflictError("Student number already in use")

    logger.info(f"User {user.id} updated by {staff_user.id}: {sorted(changes)}")
    return user


@router.delete("/users/{user_id}")
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    owner: User = Depends(get_system_owner)
):
    """
    Delete a user and their dependent data.

    Requires the system-owner permission.
    """
    user = _get_user_or_404(db, user_id)
    if user.id == owner.id:
        raise ValidationError("You cannot delete your own account")

    db.delete(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User still owns classes or records; deactivate the account instead")
    logger.info(f"System owner {owner.id} deleted user {user_id}")
    return {"message": f"User {user_id} deleted successfully"}


@router.put("/users/{user_id}/system-owner", response_model=UserResponse)
def set_system_owner(
    user_id: UUID,
    request: SystemOwnerUpdateRequest,
    db: Session = Depends(get_db),
    owner: User = Depends(get_system_owner)
):
    """Grant or revoke the system-owner permission on an admin account."""
    user = _get_user_or_404(db, user_id)
    if user.role != UserRole.ADMIN:
        raise ValidationError("Only admins can be system owners")
    if user.id == owner.id and not request.is_system_owner:
        raise ValidationError("You cannot revoke your own system-owner permission")

    user = user_crud.update(db, user, {"is_system_owner": request.is_system_owner})
    logger.warning(f"System owner flag for {user.id} set to {request.is_system_owner} by {owner.id}")
    return user


@router.post("/parent-links", status_code=201, response_model=ChildResponse)
def link_parent_to_student(
    request: ParentLinkRequest,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
):
    """Link a parent account to a student so the parent can follow attendance."""
    parent = _get_user_or_404(db, request.parent_id)
    student = _get_user_or_404(db, request.student_id)
    if parent.role != UserRole.PARENT:
        raise ValidationError("parent_id must belong to a parent account")
    if student.role != UserRole.STUDENT:
        raise ValidationError("student_id must belong to a student account")

    link = class_crud.link_parent(db, parent.id, student.id, request.relationship_type)
    return ChildResponse(
        id=student.id,
        first_name=student.first_name,
        last_name=student.last_name,
        student_number=student.student_number,
        grade=student.grade,
        relationship_type=link.relationship_type,
    )


@router.get("/backups", response_model=List[BackupResponse])
def list_backups(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
):
    """Backup history, newest first."""
    return backup_service.list_backups(db, limit=limit)


@router.post("/backups", status_code=202, response_model=BackupCreateResponse)
def create_backup(
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
):
    """
    Start a manual backup.

    The backup itself runs in a Celery worker; poll GET /admin/backups for
    the outcome.
    """
    record, queued = backup_service.start_backup(db, created_by=admin_user.id)
    return BackupCreateResponse(backup=BackupResponse.model_validate(record), queued=queued)


@router.post("/system-control", response_model=SystemControlResponse)
def run_system_control(
    request: SystemControlRequest,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
):
    """
    Run an administrative system action.

    Actions: system_health_check, database_maintenance,
    cleanup_inactive_users, generate_system_report, backup_system_data.
    purge_old_logs and reset_all_passwords require the system owner.
    """
    try:
        action = SystemAction(request.action)
    except ValueError:
        raise ValidationError("Invalid action specified")

    if action in DESTRUCTIVE_ACTIONS and not admin_user.is_system_owner:
        logger.warning(f"Admin {admin_user.id} attempted system-owner action {action.value}")
        raise AuthorizationError("Access denied. System owner privileges required.")

    result = system_control.run_action(db, action, admin_user)
    return SystemControlResponse(success=True, data=result)
