import enum
import uuid
from sqlalchemy import Column, String, Boolean, BigInteger, DateTime, Enum, ForeignKey, Uuid
from app.core.database import Base, JSONType, utcnow


class BackupType(str, enum.Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class BackupStatus(str, enum.Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class BackupRecord(Base):
    """
    One database backup run.

    Created IN_PROGRESS by the API (manual) or the scheduler (automatic) and
    finalised by the Celery backup task.
    """
    __tablename__ = "backup_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    backup_type = Column(Enum(BackupType), nullable=False, default=BackupType.MANUAL)
    status = Column(Enum(BackupStatus), nullable=False, default=BackupStatus.IN_PROGRESS, index=True)

    file_path = Column(String, nullable=True)
    size_bytes = Column(BigInteger, nullable=True)
    record_counts = Column(JSONType, nullable=True)  # {"table": row_count}
    compressed = Column(Boolean, nullable=False, default=False)
    encrypted = Column(Boolean, nullable=False, default=False)
    error_message = Column(String, nullable=True)

    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<BackupRecord(id={self.id}, type={self.backup_type.value}, status={self.status.value})>"
