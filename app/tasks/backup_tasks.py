"""
Celery tasks for backups and periodic housekeeping.

Handles manual and scheduled database backups with retry logic, and the
daily purge of old verification attempts.
"""

import logging
import uuid
from celery import shared_task

from app.core.celery_app import celery_app  # noqa: F401  Bind shared tasks to the portal app
from app.core.database import SessionLocal, utcnow
from app.services import backup_service
from app.models.backup import BackupType

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name="run_backup_task",
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(backup_service.BackupError,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max 10 minutes between retries
    retry_jitter=True
)
def run_backup_task(self, backup_id: str):
    """
    Celery task to write one backup.

    Features:
    - Automatic retry on write failure (up to 3 attempts)
    - Exponential backoff with jitter

    Args:
        backup_id: BackupRecord to complete
    """
    logger.info(f"[Task {self.request.id}] Starting backup {backup_id} (attempt {self.request.retries + 1})")

    db = SessionLocal()
    try:
        record = backup_service.run_backup(db, uuid.UUID(backup_id))
        return {
            "status": "success",
            "backup_id": backup_id,
            "file_path": record.file_path,
            "size_bytes": record.size_bytes,
        }
    except backup_service.BackupError as e:
        logger.error(f"[Task {self.request.id}] Backup {backup_id} failed: {e}")
        if self.request.retries >= self.max_retries:
            logger.error(f"All retry attempts exhausted for backup {backup_id}")
        raise  # Re-raise to trigger Celery retry
    finally:
        db.close()


@shared_task(name="scheduled_backup_task")
def scheduled_backup_task():
    """
    Periodic task that starts automatic backups.

    Runs hourly from Celery Beat; backup_settings decides whether a backup is
    actually due (auto_backup, frequency, time of day). Old backups beyond
    retention_days are pruned on every run.
    """
    from app.crud import school_config as config_crud

    db = SessionLocal()
    try:
        backup_settings = config_crud.get_backup_settings(db)
        pruned = backup_service.prune_old_backups(db, backup_settings.retention_days)

        last = backup_service.last_backup(db, BackupType.AUTOMATIC)
        last_run = last.created_at if last else None
        if not backup_service.is_backup_due(backup_settings, last_run, utcnow()):
            return {"status": "skipped", "pruned": pruned}

        record = backup_service.create_backup_record(db, BackupType.AUTOMATIC)
        backup_service.run_backup(db, record.id, backup_settings=backup_settings)
        logger.info(f"Automatic backup {record.id} completed")
        return {"status": "success", "backup_id": str(record.id), "pruned": pruned}
    except Exception as e:
        logger.error(f"Error running scheduled backup: {str(e)}")
        raise
    finally:
        db.close()


@shared_task(name="purge_verification_attempts_task")
def purge_verification_attempts_task():
    """
    Periodic task to delete verification attempts past the retention window.

    Should be configured in Celery Beat to run daily.
    """
    from app.core.admin_verification import purge_attempts

    db = SessionLocal()
    try:
        deleted_count = purge_attempts(db)
        return {"status": "success", "deleted_count": deleted_count}
    except Exception as e:
        logger.error(f"Error purging verification attempts: {str(e)}")
        raise
    finally:
        db.close()
