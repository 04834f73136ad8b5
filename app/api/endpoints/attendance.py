"""
Attendance views for students and parents.

- GET /attendance/me: caller's own history (students)
- GET /attendance/children: linked children (parents)
- GET /attendance/students/{student_id}: one student's month (parents of that
  student, teachers and staff)
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import require_roles
from app.core.exceptions import AuthorizationError, NotFoundError
from app.crud import attendance as attendance_crud
from app.crud import school_class as class_crud
from app.crud import user as user_crud
from app.models.user import User, UserRole
from app.schemas.attendance import (
    AttendanceRecordResponse,
    ChildResponse,
    StudentAttendanceResponse,
)
from app.services.statistics import summarize_attendance

router = APIRouter(prefix="/attendance", tags=["Attendance"])
logger = logging.getLogger(__name__)


def student_attendance(db: Session, student_id: UUID, start: Optional[date], end: Optional[date]) -> StudentAttendanceResponse:
    records = attendance_crud.get_for_student(db, student_id, start, end)
    return StudentAttendanceResponse(
        student_id=student_id,
        records=[AttendanceRecordResponse.model_validate(r) for r in records],
        summary=summarize_attendance(records),
    )


@router.get("/me", response_model=StudentAttendanceResponse)
def get_my_attendance(
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.STUDENT))
):
    """The caller's attendance records (optionally within start..end) and summary."""
    return student_attendance(db, current_user.id, start, end)


@router.get("/children", response_model=List[ChildResponse])
def list_children(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.PARENT))
):
    return [
        ChildResponse(
            id=link.student.id,
            first_name=link.student.first_name,
            last_name=link.student.last_name,
            student_number=link.student.student_number,
            grade=link.student.grade,
            relationship_type=link.relationship_type,
        )
        for link in class_crud.get_children(db, current_user.id)
    ]


@router.get("/students/{student_id}", response_model=StudentAttendanceResponse)
def get_student_month(
    student_id: UUID,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.PARENT, UserRole.TEACHER, UserRole.MODERATOR, UserRole.ADMIN))
):
    """
    A student's attendance for one month (the current month by default).

    Parents may only read their linked children.
    """
    student = user_crud.get_by_id(db, student_id)
    if not student or student.role != UserRole.STUDENT:
        raise NotFoundError("Student not found")

    if current_user.role == UserRole.PARENT and not class_crud.is_parent_of(db, current_user.id, student_id):
        raise AuthorizationError("You can only view your own children's attendance")

    today = date.today()
    start, end = attendance_crud.month_range(year or today.year, month or today.month)
    return student_attendance(db, student_id, start, end)
