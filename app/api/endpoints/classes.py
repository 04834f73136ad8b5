"""
Class management and class attendance endpoints.

Teachers manage the classes they teach; admins manage every class.
Attendance for a class/date is submitted as a full sheet that replaces any
earlier sheet for the same day.
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_approved_user, require_roles
from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.crud import attendance as attendance_crud
from app.crud import school_class as class_crud
from app.crud import user as user_crud
from app.models.school_class import SchoolClass
from app.models.user import User, UserRole
from app.schemas.attendance import (
    AttendanceRecordResponse,
    ClassAttendanceResponse,
    ClassCreateRequest,
    ClassResponse,
    EnrollRequest,
    MarkAttendanceRequest,
    StudentSummary,
)
from app.services.statistics import summarize_roster

router = APIRouter(prefix="/classes", tags=["Classes"])
logger = logging.getLogger(__name__)

get_teacher_or_admin = require_roles(UserRole.TEACHER, UserRole.ADMIN)


def get_class_or_404(db: Session, class_id: UUID) -> SchoolClass:
    school_class = class_crud.get_by_id(db, class_id)
    if not school_class or not school_class.is_active:
        raise NotFoundError("Class not found")
    return school_class


def ensure_can_manage(user: User, school_class: SchoolClass) -> None:
    """Only the class teacher or an admin may change a class or its attendance."""
    if user.role != UserRole.ADMIN and school_class.teacher_id != user.id:
        raise AuthorizationError("Only the class teacher or an admin can do this")


def ensure_can_view(db: Session, user: User, school_class: SchoolClass) -> None:
    if user.role in (UserRole.ADMIN, UserRole.MODERATOR) or school_class.teacher_id == user.id:
        return
    if user.role == UserRole.STUDENT and class_crud.is_enrolled(db, school_class.id, user.id):
        return
    raise AuthorizationError("You do not have access to this class")


@router.post("/", status_code=201, response_model=ClassResponse)
def create_class(
    request: ClassCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    """
    Create a class with a generated class code.

    Teachers always own the classes they create; admins may assign a teacher.
    """
    teacher_id = current_user.id
    if current_user.role == UserRole.ADMIN and request.teacher_id:
        teacher = user_crud.get_by_id(db, request.teacher_id)
        if not teacher or teacher.role != UserRole.TEACHER:
            raise ValidationError("teacher_id must belong to a teacher account")
        teacher_id = teacher.id

    school_class = class_crud.create(
        db,
        name=request.name,
        subject=request.subject,
        grade_level=request.grade_level,
        teacher_id=teacher_id,
    )
    logger.info(f"Class {school_class.class_code} created by {current_user.id}")
    return school_class


@router.get("/", response_model=List[ClassResponse])
def list_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """Classes taught by (teachers), attended by (students) or visible to (staff) the caller."""
    return class_crud.get_for_user(db, current_user)


@router.get("/{class_id}", response_model=ClassResponse)
def get_class(
    class_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    school_class = get_class_or_404(db, class_id)
    ensure_can_view(db, current_user, school_class)
    return school_class


@router.get("/{class_id}/students", response_model=List[StudentSummary])
def list_roster(
    class_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    school_class = get_class_or_404(db, class_id)
    ensure_can_manage(current_user, school_class)
    return class_crud.get_roster(db, school_class.id)


@router.post("/{class_id}/students", response_model=List[StudentSummary])
def enroll_students(
    class_id: UUID,
    request: EnrollRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    """Enroll students and return the updated roster."""
    school_class = get_class_or_404(db, class_id)
    ensure_can_manage(current_user, school_class)

    for student_id in request.student_ids:
        student = user_crud.get_by_id(db, student_id)
        if not student or student.role != UserRole.STUDENT:
            raise ValidationError(f"User {student_id} is not a student")

    class_crud.enroll(db, school_class, request.student_ids)
    logger.info(f"{len(request.student_ids)} students enrolled in class {school_class.class_code}")
    return class_crud.get_roster(db, school_class.id)


@router.delete("/{class_id}/students/{student_id}")
def unenroll_student(
    class_id: UUID,
    student_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    school_class = get_class_or_404(db, class_id)
    ensure_can_manage(current_user, school_class)
    if not class_crud.unenroll(db, school_class, student_id):
        raise NotFoundError("Student is not enrolled in this class")
    return {"message": "Student removed from class"}


@router.post("/{class_id}/attendance", response_model=ClassAttendanceResponse)
def mark_attendance(
    class_id: UUID,
    request: MarkAttendanceRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    """
    Save the attendance sheet for a class and date.

    Replaces any sheet already saved for that date. Every student on the
    sheet must be enrolled in the class and appear only once.
    """
    school_class = get_class_or_404(db, class_id)
    ensure_can_manage(current_user, school_class)

    roster_ids = [s.id for s in class_crud.get_roster(db, school_class.id)]
    submitted_ids = [entry.student_id for entry in request.records]
    if len(set(submitted_ids)) != len(submitted_ids):
        raise ValidationError("Each student may appear only once per attendance sheet")
    not_enrolled = [str(sid) for sid in submitted_ids if sid not in set(roster_ids)]
    if not_enrolled:
        raise ValidationError(f"Students not enrolled in this class: {', '.join(not_enrolled)}")

    records = attendance_crud.replace_for_class_date(
        db, school_class.id, request.attendance_date, request.records, marked_by=current_user.id
    )
    logger.info(f"Attendance for class {school_class.class_code} on {request.attendance_date} saved by {current_user.id}")

    return ClassAttendanceResponse(
        class_id=school_class.id,
        attendance_date=request.attendance_date,
        records=[AttendanceRecordResponse.model_validate(r) for r in records],
        summary=summarize_roster(roster_ids, records),
    )


@router.get("/{class_id}/attendance", response_model=ClassAttendanceResponse)
def get_class_attendance(
    class_id: UUID,
    attendance_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    """
    Attendance for a class on a date (today by default).

    The summary covers the whole roster; students without a record count
    as present.
    """
    school_class = get_class_or_404(db, class_id)
    ensure_can_manage(current_user, school_class)
    attendance_date = attendance_date or date.today()

    records = attendance_crud.get_for_class_date(db, school_class.id, attendance_date)
    roster_ids = [s.id for s in class_crud.get_roster(db, school_class.id)]

    return ClassAttendanceResponse(
        class_id=school_class.id,
        attendance_date=attendance_date,
        records=[AttendanceRecordResponse.model_validate(r) for r in records],
        summary=summarize_roster(roster_ids, records),
    )
