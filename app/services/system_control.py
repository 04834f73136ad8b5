"""
Admin system control actions.

Each action takes a session and the acting admin and returns a JSON-ready
result dict. Permission checks (admin vs system owner) happen in the
endpoint before dispatch.
"""

import logging
from datetime import timedelta
from typing import Any, Callable, Dict
from sqlalchemy import func, or_, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import admin_verification
from app.core.config import settings
from app.core.database import utcnow
from app.crud import user as user_crud
from app.models import (
    AdminVerificationCode,
    Announcement,
    User,
)
from app.schemas.backup import SystemAction
from app.services import backup_service

logger = logging.getLogger(__name__)

INACTIVE_REVIEW_DAYS = 90


def system_health_check(db: Session, actor: User) -> Dict[str, Any]:
    try:
        db.execute(text("SELECT 1"))
        database_status = "HEALTHY"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db.rollback()
        database_status = "ERROR"

    last = backup_service.last_backup(db)
    return {
        "database_status": database_status,
        "environment": settings.ENVIRONMENT,
        "active_users_count": db.query(func.count(User.id)).filter(User.is_active == True).scalar() or 0,
        "pending_approvals": user_crud.count_pending(db),
        "active_verification_codes": admin_verification.count_active_codes(db),
        "last_backup": last.completed_at.isoformat() if last and last.completed_at else None,
        "checked_at": utcnow().isoformat(),
    }


def database_maintenance(db: Session, actor: User) -> Dict[str, Any]:
    """
    Deactivate rows whose expiry has passed.

    Expired verification codes and announcements are switched off so
    lookups and feeds stay small; nothing is deleted.
    """
    now = utcnow()
    codes = db.query(AdminVerificationCode).filter(
        AdminVerificationCode.is_active == True,
        AdminVerificationCode.expires_at.isnot(None),
        AdminVerificationCode.expires_at < now
    ).update({"is_active": False}, synchronize_session=False)

    announcements = db.query(Announcement).filter(
        Announcement.is_active == True,
        Announcement.expires_at.isnot(None),
        Announcement.expires_at < now
    ).update({"is_active": False}, synchronize_session=False)
    db.commit()

    if db.get_bind().dialect.name == "postgresql":
        db.execute(text("ANALYZE"))
        db.commit()

    return {
        "expired_codes_deactivated": codes,
        "expired_announcements_deactivated": announcements,
        "status": "Maintenance completed successfully",
        "performed_at": now.isoformat(),
    }


def cleanup_inactive_users(db: Session, actor: User) -> Dict[str, Any]:
    """
    Identify accounts for review: deactivated ones, and registrations that
    have waited for approval longer than INACTIVE_REVIEW_DAYS.
    """
    cutoff = utcnow() - timedelta(days=INACTIVE_REVIEW_DAYS)
    candidates = db.query(User).filter(
        or_(
            User.is_active == False,
            (User.approved == False) & (User.created_at < cutoff)
        ),
        User.is_system_owner == False
    ).all()

    return {
        "message": f"Found {len(candidates)} inactive users",
        "inactive_users": len(candidates),
        "user_ids": [str(u.id) for u in candidates],
        "action_taken": "Identified for review",
        "cleanup_date": utcnow().isoformat(),
    }


def generate_system_report(db: Session, actor: User) -> Dict[str, Any]:
    by_role = user_crud.count_by_role(db)
    active = db.query(func.count(User.id)).filter(User.is_active == True).scalar() or 0
    total = sum(by_role.values())

    record_counts = {
        model.__tablename__: db.query(func.count()).select_from(model).scalar() or 0
        for model in backup_service.BACKUP_MODELS
    }

    return {
        "generated_at": utcnow().isoformat(),
        "generated_by": actor.display_name,
        "user_statistics": {
            "total_users": total,
            "students": by_role["student"],
            "teachers": by_role["teacher"],
            "parents": by_role["parent"],
            "moderators": by_role["moderator"],
            "admins": by_role["admin"],
            "active_users": active,
            "inactive_users": total - active,
            "pending_approvals": user_crud.count_pending(db),
        },
        "system_metrics": {
            "database_tables": len(record_counts),
            "record_counts": record_counts,
            "total_records": sum(record_counts.values()),
        },
    }


def backup_system_data(db: Session, actor: User) -> Dict[str, Any]:
    record, queued = backup_service.start_backup(db, created_by=actor.id)
    return {
        "backup_id": str(record.id),
        "status": record.status.value,
        "queued": queued,
        "created_at": record.created_at.isoformat(),
        "created_by": actor.display_name,
    }


def purge_old_logs(db: Session, actor: User) -> Dict[str, Any]:
    deleted = admin_verification.purge_attempts(db)
    return {
        "logs_purged": deleted,
        "date_range": f"Older than {settings.ATTEMPT_LOG_RETENTION_DAYS} days",
        "purged_at": utcnow().isoformat(),
    }


def reset_all_passwords(db: Session, actor: User) -> Dict[str, Any]:
    """
    Flag every other active account for a forced password change.

    Flagged accounts are refused by the portal gates in app.core.deps until
    they call POST /auth/change-password.
    """
    affected = db.query(User).filter(
        User.is_active == True,
        User.id != actor.id
    ).update({"password_reset_required": True}, synchronize_session=False)
    db.commit()

    logger.warning(f"Password reset required for {affected} users, initiated by {actor.id}")
    return {
        "message": "Password reset initiated for all active users",
        "users_affected": affected,
        "initiated_by": actor.display_name,
        "initiated_at": utcnow().isoformat(),
    }


ACTIONS: Dict[SystemAction, Callable[[Session, User], Dict[str, Any]]] = {
    SystemAction.SYSTEM_HEALTH_CHECK: system_health_check,
    SystemAction.DATABASE_MAINTENANCE: database_maintenance,
    SystemAction.CLEANUP_INACTIVE_USERS: cleanup_inactive_users,
    SystemAction.GENERATE_SYSTEM_REPORT: generate_system_report,
    SystemAction.BACKUP_SYSTEM_DATA: backup_system_data,
    SystemAction.PURGE_OLD_LOGS: purge_old_logs,
    SystemAction.RESET_ALL_PASSWORDS: reset_all_passwords,
}


def run_action(db: Session, action: SystemAction, actor: User) -> Dict[str, Any]:
    logger.info(f"Admin {actor.display_name} executing action: {action.value}")
    return ACTIONS[action](db, actor)
