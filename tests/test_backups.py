"""
Tests for the backup service and scheduling rules.
"""

import os
import pytest
from datetime import datetime, timedelta, timezone
from cryptography.fernet import InvalidToken

from app.core.encryption import BackupEncryption
from app.models.backup import BackupRecord, BackupStatus, BackupType
from app.schemas.school_config import BackupFrequency, BackupSettings
from app.services import backup_service


def new_record(db_session, **kwargs):
    return backup_service.create_backup_record(db_session, **kwargs)


class TestRunBackup:
    """Test writing backups"""

    def test_plain_backup_round_trip(self, db_session, tmp_path, student, teacher):
        record = new_record(db_session)
        settings = BackupSettings(compress_backups=False, encrypt_backups=False)

        record = backup_service.run_backup(db_session, record.id, backup_settings=settings, directory=str(tmp_path))

        assert record.status == BackupStatus.COMPLETED
        assert record.file_path.endswith(".json")
        assert record.size_bytes == os.path.getsize(record.file_path)
        assert record.record_counts["users"] == 2
        assert record.compressed is False
        assert record.encrypted is False

        payload = backup_service.read_backup(record.file_path)
        assert payload["backup_id"] == str(record.id)
        assert {row["email"] for row in payload["tables"]["users"]} == {"student@school.edu", "teacher@school.edu"}

    def test_compressed_and_encrypted(self, db_session, tmp_path, student):
        encryption = BackupEncryption(BackupEncryption.generate_key())
        record = new_record(db_session)

        record = backup_service.run_backup(
            db_session, record.id,
            backup_settings=BackupSettings(),
            encryption=encryption,
            directory=str(tmp_path),
        )

        assert record.file_path.endswith(".json.gz.enc")
        assert record.compressed is True
        assert record.encrypted is True

        payload = backup_service.read_backup(record.file_path, encryption=encryption)
        assert payload["tables"]["users"][0]["role"] == "student"

        with pytest.raises(InvalidToken):
            backup_service.read_backup(record.file_path, encryption=BackupEncryption(BackupEncryption.generate_key()))

    def test_encryption_skipped_without_key(self, db_session, tmp_path):
        record = new_record(db_session)

        record = backup_service.run_backup(
            db_session, record.id,
            backup_settings=BackupSettings(compress_backups=False),
            encryption=BackupEncryption(""),
            directory=str(tmp_path),
        )

        assert record.encrypted is False
        assert record.file_path.endswith(".json")

    def test_user_data_can_be_excluded(self, db_session, tmp_path, student):
        record = new_record(db_session)
        settings = BackupSettings(include_user_data=False, compress_backups=False)

        record = backup_service.run_backup(db_session, record.id, backup_settings=settings, directory=str(tmp_path))

        assert "users" not in record.record_counts
        assert "private_messages" not in record.record_counts
        assert "classes" in record.record_counts

    def test_write_failure_marks_record_failed(self, db_session, tmp_path):
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("x")
        record = new_record(db_session)

        with pytest.raises(backup_service.BackupError):
            backup_service.run_backup(
                db_session, record.id,
                backup_settings=BackupSettings(compress_backups=False),
                directory=str(blocker),
            )

        db_session.refresh(record)
        assert record.status == BackupStatus.FAILED
        assert record.error_message

    def test_unknown_record(self, db_session, tmp_path):
        import uuid

        with pytest.raises(backup_service.BackupError):
            backup_service.run_backup(db_session, uuid.uuid4(), directory=str(tmp_path))


class TestSchedule:
    """Test is_backup_due"""

    now = datetime(2026, 3, 10, 2, 30, tzinfo=timezone.utc)

    def test_disabled(self):
        assert backup_service.is_backup_due(BackupSettings(auto_backup=False), None, self.now) is False

    def test_before_time_of_day(self):
        settings = BackupSettings(time="03:00")
        assert backup_service.is_backup_due(settings, None, self.now) is False

    def test_first_backup_runs(self):
        assert backup_service.is_backup_due(BackupSettings(time="02:00"), None, self.now) is True

    def test_daily_interval(self):
        settings = BackupSettings(time="02:00", frequency=BackupFrequency.DAILY)

        assert backup_service.is_backup_due(settings, self.now - timedelta(hours=3), self.now) is False
        assert backup_service.is_backup_due(settings, self.now - timedelta(hours=23, minutes=30), self.now) is True

    def test_weekly_interval(self):
        settings = BackupSettings(time="02:00", frequency=BackupFrequency.WEEKLY)

        assert backup_service.is_backup_due(settings, self.now - timedelta(days=3), self.now) is False
        assert backup_service.is_backup_due(settings, self.now - timedelta(days=7), self.now) is True

    def test_naive_last_run_is_treated_as_utc(self):
        settings = BackupSettings(time="02:00")
        last_run = (self.now - timedelta(days=2)).replace(tzinfo=None)

        assert backup_service.is_backup_due(settings, last_run, self.now) is True


class TestPrune:
    """Test retention"""

    def test_prunes_old_records_and_files(self, db_session, tmp_path):
        now = datetime(2026, 3, 10, tzinfo=timezone.utc)
        old_file = tmp_path / "old.json"
        old_file.write_text("{}")

        db_session.add_all([
            BackupRecord(backup_type=BackupType.AUTOMATIC, status=BackupStatus.COMPLETED,
                         file_path=str(old_file), created_at=now - timedelta(days=40)),
            BackupRecord(backup_type=BackupType.MANUAL, status=BackupStatus.IN_PROGRESS,
                         created_at=now - timedelta(days=40)),
            BackupRecord(backup_type=BackupType.AUTOMATIC, status=BackupStatus.COMPLETED,
                         created_at=now - timedelta(days=5)),
        ])
        db_session.commit()

        removed = backup_service.prune_old_backups(db_session, retention_days=30, now=now)

        assert removed == 1
        assert not old_file.exists()
        assert db_session.query(BackupRecord).count() == 2

    def test_last_backup_ignores_failed(self, db_session):
        db_session.add_all([
            BackupRecord(backup_type=BackupType.MANUAL, status=BackupStatus.COMPLETED,
                         created_at=datetime(2026, 3, 1, tzinfo=timezone.utc)),
            BackupRecord(backup_type=BackupType.MANUAL, status=BackupStatus.FAILED,
                         created_at=datetime(2026, 3, 2, tzinfo=timezone.utc)),
        ])
        db_session.commit()

        last = backup_service.last_backup(db_session)

        assert last.status == BackupStatus.COMPLETED
        assert backup_service.last_backup(db_session, BackupType.AUTOMATIC) is None
