"""
Database backup service.

Dumps the portal tables to a JSON document, optionally gzips and
Fernet-encrypts it, and writes it under BACKUP_DIR. Each run is tracked by a
BackupRecord that moves IN_PROGRESS -> COMPLETED or FAILED.

Runs inside Celery workers (app.tasks.backup_tasks); nothing here touches
the request path except start_backup.
"""

import enum
import gzip
import json
import logging
import os
import uuid
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.celery_utils import queue_task_safely
from app.core.config import settings
from app.core.database import as_utc, utcnow
from app.core.encryption import BackupEncryption, backup_encryption
from app.crud import school_config as config_crud
from app.models import (
    AdminVerificationAttempt,
    AdminVerificationCode,
    Announcement,
    AttendanceRecord,
    BackupRecord,
    BackupStatus,
    BackupType,
    ClassEnrollment,
    HomeworkAssignment,
    HomeworkSubmission,
    ParentStudentRelationship,
    PrivateMessage,
    SchoolClass,
    SchoolConfig,
    User,
)
from app.schemas.school_config import BackupFrequency, BackupSettings

logger = logging.getLogger(__name__)

BACKUP_FORMAT_VERSION = 1

# Dump order follows foreign keys so a restore can insert top to bottom
BACKUP_MODELS = [
    User,
    SchoolConfig,
    SchoolClass,
    ClassEnrollment,
    ParentStudentRelationship,
    AttendanceRecord,
    HomeworkAssignment,
    HomeworkSubmission,
    Announcement,
    PrivateMessage,
    AdminVerificationCode,
    AdminVerificationAttempt,
]

# Skipped when backup_settings.include_user_data is off
USER_DATA_TABLES = {"users", "parent_student_relationships", "private_messages"}

FREQUENCY_INTERVALS = {
    BackupFrequency.DAILY: timedelta(days=1),
    BackupFrequency.WEEKLY: timedelta(days=7),
    BackupFrequency.MONTHLY: timedelta(days=30),
}

# Beat runs hourly; allow a run that lands slightly early in the hour
SCHEDULE_SLACK = timedelta(hours=1)


class BackupError(Exception):
    """Backup could not be written."""
    pass


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        column.key: _serialize(getattr(row, column.key))
        for column in inspect(row).mapper.column_attrs
    }


def dump_tables(db: Session, include_user_data: bool = True) -> Dict[str, List[Dict[str, Any]]]:
    """
    Read every backed-up table into plain JSON-ready rows.

    Args:
        db: Database session
        include_user_data: Include account, family link and message tables

    Returns:
        {table_name: [row, ...]}
    """
    tables = {}
    for model in BACKUP_MODELS:
        name = model.__tablename__
        if not include_user_data and name in USER_DATA_TABLES:
            continue
        tables[name] = [_row_to_dict(row) for row in db.query(model).all()]
    return tables


def write_backup(
    payload: Dict[str, Any],
    directory: str,
    name: str,
    compress: bool,
    encryption: Optional[BackupEncryption] = None,
) -> Tuple[str, int, bool]:
    """
    Serialize and write a backup document.

    Returns:
        (file path, size in bytes, whether the file is encrypted)
    """
    data = json.dumps(payload, sort_keys=True).encode("utf-8")
    filename = f"{name}.json"

    if compress:
        data = gzip.compress(data)
        filename += ".gz"

    encrypted = encryption is not None and encryption.enabled
    if encrypted:
        data = encryption.encrypt(data)
        filename += ".enc"

    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    with open(path, "wb") as f:
        f.write(data)

    return path, len(data), encrypted


def read_backup(path: str, encryption: Optional[BackupEncryption] = None) -> Dict[str, Any]:
    """Load a backup written by write_backup, undoing encryption and compression."""
    with open(path, "rb") as f:
        data = f.read()

    if path.endswith(".enc"):
        data = (encryption or backup_encryption).decrypt(data)
        path = path[:-len(".enc")]
    if path.endswith(".gz"):
        data = gzip.decompress(data)

    return json.loads(data.decode("utf-8"))


def create_backup_record(
    db: Session,
    backup_type: BackupType = BackupType.MANUAL,
    created_by: Optional[uuid.UUID] = None,
) -> BackupRecord:
    record = BackupRecord(
        backup_type=backup_type,
        status=BackupStatus.IN_PROGRESS,
        created_by=created_by,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def start_backup(db: Session, created_by: Optional[uuid.UUID] = None) -> Tuple[BackupRecord, bool]:
    """
    Create a manual BackupRecord and hand it to a Celery worker.

    When the broker refuses the task the record is marked FAILED right away
    so it never lingers IN_PROGRESS.

    Returns:
        (record, whether the task was queued)
    """
    from app.tasks.backup_tasks import run_backup_task

    record = create_backup_record(db, BackupType.MANUAL, created_by=created_by)
    queued = queue_task_safely(run_backup_task, str(record.id))
    if not queued:
        record.status = BackupStatus.FAILED
        record.error_message = "Could not queue backup task"
        record.completed_at = utcnow()
        db.commit()
        db.refresh(record)
    return record, queued


def run_backup(
    db: Session,
    backup_id: uuid.UUID,
    backup_settings: Optional[BackupSettings] = None,
    encryption: Optional[BackupEncryption] = None,
    directory: Optional[str] = None,
) -> BackupRecord:
    """
    Perform the backup tracked by a BackupRecord.

    Compression, encryption and user-data inclusion follow backup_settings.
    Encryption only applies when a key is configured.

    Args:
        db: Database session
        backup_id: IN_PROGRESS BackupRecord to complete
        backup_settings: Settings to honour (loaded from school_config if omitted)
        encryption: Cipher (module default if omitted)
        directory: Output directory (BACKUP_DIR if omitted)

    Returns:
        The completed BackupRecord

    Raises:
        BackupError: Record missing, or writing failed (record marked FAILED)
    """
    record = db.query(BackupRecord).filter(BackupRecord.id == backup_id).first()
    if record is None:
        raise BackupError(f"Backup {backup_id} not found")

    backup_settings = backup_settings or config_crud.get_backup_settings(db)
    encryption = encryption or backup_encryption
    directory = directory or settings.BACKUP_DIR

    record.status = BackupStatus.IN_PROGRESS
    record.error_message = None
    db.commit()

    try:
        tables = dump_tables(db, include_user_data=backup_settings.include_user_data)
        payload = {
            "version": BACKUP_FORMAT_VERSION,
            "backup_id": str(record.id),
            "backup_type": record.backup_type.value,
            "created_at": utcnow().isoformat(),
            "include_files": backup_settings.include_files,
            "tables": tables,
        }
        name = f"backup-{record.backup_type.value}-{utcnow():%Y%m%d-%H%M%S}-{str(record.id)[:8]}"
        path, size, encrypted = write_backup(
            payload,
            directory,
            name,
            compress=backup_settings.compress_backups,
            encryption=encryption if backup_settings.encrypt_backups else None,
        )
    except (OSError, TypeError, ValueError) as e:
        record.status = BackupStatus.FAILED
        record.error_message = str(e)
        record.completed_at = utcnow()
        db.commit()
        logger.error(f"Backup {record.id} failed: {e}", exc_info=True)
        raise BackupError(str(e)) from e

    record.status = BackupStatus.COMPLETED
    record.file_path = path
    record.size_bytes = size
    record.record_counts = {table: len(rows) for table, rows in tables.items()}
    record.compressed = backup_settings.compress_backups
    record.encrypted = encrypted
    record.completed_at = utcnow()
    db.commit()
    db.refresh(record)

    logger.info(f"Backup {record.id} completed: {path} ({size} bytes, encrypted={encrypted})")
    return record


def list_backups(db: Session, limit: int = 50) -> List[BackupRecord]:
    return db.query(BackupRecord).order_by(BackupRecord.created_at.desc()).limit(limit).all()


def last_backup(db: Session, backup_type: Optional[BackupType] = None) -> Optional[BackupRecord]:
    """Most recent completed backup, optionally of one type."""
    query = db.query(BackupRecord).filter(BackupRecord.status == BackupStatus.COMPLETED)
    if backup_type is not None:
        query = query.filter(BackupRecord.backup_type == backup_type)
    return query.order_by(BackupRecord.created_at.desc()).first()


def is_backup_due(backup_settings: BackupSettings, last_run: Optional[datetime], now: datetime) -> bool:
    """
    Decide whether the scheduler should start an automatic backup.

    A backup is due once the configured time of day has passed and at least
    one frequency interval (less the scheduling slack) has elapsed since the
    previous automatic backup.
    """
    if not backup_settings.auto_backup:
        return False

    hour, minute = (int(part) for part in backup_settings.time.split(":"))
    if now.time() < time(hour, minute):
        return False

    if last_run is None:
        return True

    interval = FREQUENCY_INTERVALS[backup_settings.frequency]
    return now - as_utc(last_run) >= interval - SCHEDULE_SLACK


def prune_old_backups(db: Session, retention_days: int, now: Optional[datetime] = None) -> int:
    """
    Delete backups (records and files) older than the retention window.

    In-progress backups are never pruned.

    Returns:
        int: Number of backups removed
    """
    cutoff = (now or utcnow()) - timedelta(days=retention_days)
    old = db.query(BackupRecord).filter(
        BackupRecord.created_at < cutoff,
        BackupRecord.status != BackupStatus.IN_PROGRESS
    ).all()

    for record in old:
        if record.file_path and os.path.exists(record.file_path):
            try:
                os.remove(record.file_path)
            except OSError as e:
                logger.warning(f"Could not remove backup file {record.file_path}: {e}")
        db.delete(record)
    db.commit()

    if old:
        logger.info(f"Pruned {len(old)} backups older than {retention_days} days")
    return len(old)
