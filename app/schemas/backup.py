"""
Pydantic schemas for backups and system control actions.
"""

from pydantic import BaseModel, UUID4
from typing import Any, Dict, Optional
from datetime import datetime
from enum import Enum

from app.models.backup import BackupStatus, BackupType


class BackupResponse(BaseModel):
    id: UUID4
    backup_type: BackupType
    status: BackupStatus
    file_path: Optional[str] = None
    size_bytes: Optional[int] = None
    record_counts: Optional[Dict[str, int]] = None
    compressed: bool
    encrypted: bool
    error_message: Optional[str] = None
    created_by: Optional[UUID4] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BackupCreateResponse(BaseModel):
    backup: BackupResponse
    queued: bool


class SystemAction(str, Enum):
    SYSTEM_HEALTH_CHECK = "system_health_check"
    DATABASE_MAINTENANCE = "database_maintenance"
    CLEANUP_INACTIVE_USERS = "cleanup_inactive_users"
    GENERATE_SYSTEM_REPORT = "generate_system_report"
    BACKUP_SYSTEM_DATA = "backup_system_data"
    PURGE_OLD_LOGS = "purge_old_logs"
    RESET_ALL_PASSWORDS = "reset_all_passwords"


# Actions only the system owner may run
DESTRUCTIVE_ACTIONS = {SystemAction.PURGE_OLD_LOGS, SystemAction.RESET_ALL_PASSWORDS}


class SystemControlRequest(BaseModel):
    """
    Body of POST /admin/system-control.

    action stays a plain string so unknown actions get the standard
    "Invalid action specified" error instead of a schema error.
    """
    action: str


class SystemControlResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
