"""
Database models package.
"""

from app.models.user import User, UserRole
from app.models.admin_verification import AdminVerificationCode, AdminVerificationAttempt
from app.models.school_class import SchoolClass, ClassEnrollment
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.parent_link import ParentStudentRelationship
from app.models.homework import HomeworkAssignment, HomeworkSubmission, SubmissionStatus
from app.models.announcement import Announcement, AnnouncementType, TargetAudience
from app.models.message import PrivateMessage
from app.models.school_config import SchoolConfig
from app.models.backup import BackupRecord, BackupStatus, BackupType

__all__ = [
    "User", "UserRole",
    "AdminVerificationCode", "AdminVerificationAttempt",
    "SchoolClass", "ClassEnrollment",
    "AttendanceRecord", "AttendanceStatus",
    "ParentStudentRelationship",
    "HomeworkAssignment", "HomeworkSubmission", "SubmissionStatus",
    "Announcement", "AnnouncementType", "TargetAudience",
    "PrivateMessage",
    "SchoolConfig",
    "BackupRecord", "BackupStatus", "BackupType",
]
