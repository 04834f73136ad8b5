"""
Role dashboards.

Each builder gathers the numbers one role's landing page shows. Summaries
are computed by app.services.statistics.
"""

import logging
from datetime import date
from typing import Optional, Union
from sqlalchemy.orm import Session

from app.core import admin_verification
from app.crud import announcement as announcement_crud
from app.crud import attendance as attendance_crud
from app.crud import homework as homework_crud
from app.crud import message as message_crud
from app.crud import school_class as class_crud
from app.crud import user as user_crud
from app.models.user import User, UserRole
from app.schemas.backup import BackupResponse
from app.schemas.dashboard import (
    ChildOverview,
    ParentDashboard,
    StaffDashboard,
    StudentDashboard,
    TeacherDashboard,
)
from app.services import backup_service
from app.services.statistics import summarize_attendance, summarize_homework

logger = logging.getLogger(__name__)

Dashboard = Union[StudentDashboard, TeacherDashboard, ParentDashboard, StaffDashboard]


def _common(db: Session, user: User) -> dict:
    return {
        "role": user.role.value,
        "unread_messages": message_crud.count_unread(db, user.id),
        "announcements": announcement_crud.count_feed(db, user.role),
    }


def student_dashboard(db: Session, user: User) -> StudentDashboard:
    return StudentDashboard(
        attendance=summarize_attendance(attendance_crud.get_for_student(db, user.id)),
        homework=summarize_homework(homework_crud.get_submissions_for_student(db, user.id)),
        **_common(db, user),
    )


def teacher_dashboard(db: Session, user: User) -> TeacherDashboard:
    classes = class_crud.get_for_user(db, user)
    students = set()
    for school_class in classes:
        students.update(s.id for s in class_crud.get_roster(db, school_class.id))

    return TeacherDashboard(
        classes=len(classes),
        students=len(students),
        pending_submissions=homework_crud.count_pending_for_teacher(db, user.id),
        **_common(db, user),
    )


def parent_dashboard(db: Session, user: User, today: Optional[date] = None) -> ParentDashboard:
    """Each linked child's attendance for the current month."""
    today = today or date.today()
    start, end = attendance_crud.month_range(today.year, today.month)

    children = []
    for link in class_crud.get_children(db, user.id):
        summary = summarize_attendance(attendance_crud.get_for_student(db, link.student_id, start, end))
        children.append(ChildOverview(
            id=link.student.id,
            name=link.student.display_name,
            month=f"{today:%Y-%m}",
            attendance_percentage=summary.percentage,
            attendance=summary,
        ))

    return ParentDashboard(children=children, **_common(db, user))


def staff_dashboard(db: Session, user: User) -> StaffDashboard:
    dashboard = StaffDashboard(
        users_by_role=user_crud.count_by_role(db),
        pending_approvals=user_crud.count_pending(db),
        **_common(db, user),
    )
    if user.role == UserRole.ADMIN:
        dashboard.active_verification_codes = admin_verification.count_active_codes(db)
        last = backup_service.last_backup(db)
        dashboard.last_backup = BackupResponse.model_validate(last) if last else None
    return dashboard


def build_dashboard(db: Session, user: User) -> Dashboard:
    if user.role == UserRole.STUDENT:
        return student_dashboard(db, user)
    if user.role == UserRole.TEACHER:
        return teacher_dashboard(db, user)
    if user.role == UserRole.PARENT:
        return parent_dashboard(db, user)
    return staff_dashboard(db, user)
