"""
CRUD operations for attendance records.
"""

import calendar
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from app.models.attendance import AttendanceRecord
from app.schemas.attendance import AttendanceEntry


def month_range(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def replace_for_class_date(
    db: Session,
    class_id: uuid.UUID,
    attendance_date: date,
    entries: List[AttendanceEntry],
    marked_by: uuid.UUID,
) -> List[AttendanceRecord]:
    """
    Save the attendance sheet for one class and date.

    Existing rows for that class/date are replaced in the same transaction,
    so re-submitting a sheet never leaves duplicates behind.
    """
    db.query(AttendanceRecord).filter(
        AttendanceRecord.class_id == class_id,
        AttendanceRecord.attendance_date == attendance_date
    ).delete(synchronize_session=False)

    now = datetime.now(timezone.utc)
    records = [
        AttendanceRecord(
            class_id=class_id,
            student_id=entry.student_id,
            attendance_date=attendance_date,
            status=entry.status,
            notes=entry.notes,
            marked_by=marked_by,
            marked_at=now,
        )
        for entry in entries
    ]
    db.add_all(records)
    db.commit()
    for record in records:
        db.refresh(record)
    return records


def get_for_class_date(db: Session, class_id: uuid.UUID, attendance_date: date) -> List[AttendanceRecord]:
    return db.query(AttendanceRecord).filter(
        AttendanceRecord.class_id == class_id,
        AttendanceRecord.attendance_date == attendance_date
    ).all()


def get_for_student(
    db: Session,
    student_id: uuid.UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[AttendanceRecord]:
    """A student's records in an optional inclusive date range, newest first."""
    query = db.query(AttendanceRecord).filter(AttendanceRecord.student_id == student_id)
    if start is not None:
        query = query.filter(AttendanceRecord.attendance_date >= start)
    if end is not None:
        query = query.filter(AttendanceRecord.attendance_date <= end)
    return query.order_by(AttendanceRecord.attendance_date.desc()).all()
