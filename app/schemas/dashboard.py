"""
Pydantic schemas for the role dashboards.
"""

from pydantic import BaseModel, UUID4
from typing import Dict, List, Optional

from app.schemas.attendance import AttendanceSummary
from app.schemas.backup import BackupResponse
from app.schemas.homework import HomeworkSummary


class DashboardBase(BaseModel):
    role: str
    unread_messages: int = 0
    announcements: int = 0


class StudentDashboard(DashboardBase):
    attendance: AttendanceSummary
    homework: HomeworkSummary


class TeacherDashboard(DashboardBase):
    classes: int
    students: int
    pending_submissions: int


class ChildOverview(BaseModel):
    id: UUID4
    name: str
    month: str  # "YYYY-MM"
    attendance_percentage: int
    attendance: AttendanceSummary


class ParentDashboard(DashboardBase):
    children: List[ChildOverview]


class StaffDashboard(DashboardBase):
    """Moderator and admin view; the admin-only fields stay None for moderators"""
    users_by_role: Dict[str, int]
    pending_approvals: int
    active_verification_codes: Optional[int] = None
    last_backup: Optional[BackupResponse] = None
