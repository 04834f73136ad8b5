"""
Tests for the Celery periodic tasks, executed synchronously.
"""

import pytest

from app.core.config import settings
from app.crud import school_config as config_crud
from app.models.backup import BackupRecord, BackupStatus, BackupType
from app.schemas.school_config import BackupSettings
from app.tasks import backup_tasks

from conftest import TestingSessionLocal


@pytest.fixture
def task_db(db_session, monkeypatch, tmp_path):
    """Point the tasks at the test database and a temporary backup directory."""
    monkeypatch.setattr(backup_tasks, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(settings, "BACKUP_DIR", str(tmp_path))
    return db_session


def test_scheduled_backup_runs_when_due(task_db):
    config_crud.save(task_db, "backup_settings", BackupSettings(time="00:00"))

    result = backup_tasks.scheduled_backup_task()

    assert result["status"] == "success"
    record = task_db.query(BackupRecord).one()
    assert record.backup_type == BackupType.AUTOMATIC
    assert record.status == BackupStatus.COMPLETED


def test_scheduled_backup_skips_when_disabled(task_db):
    config_crud.save(task_db, "backup_settings", BackupSettings(auto_backup=False))

    result = backup_tasks.scheduled_backup_task()

    assert result == {"status": "skipped", "pruned": 0}
    assert task_db.query(BackupRecord).count() == 0


def test_manual_backup_task(task_db):
    from app.services import backup_service

    record = backup_service.create_backup_record(task_db)

    result = backup_tasks.run_backup_task(str(record.id))

    assert result["status"] == "success"
    task_db.expire_all()
    assert task_db.query(BackupRecord).one().status == BackupStatus.COMPLETED


def test_purge_task(task_db):
    assert backup_tasks.purge_verification_attempts_task() == {"status": "success", "deleted_count": 0}
