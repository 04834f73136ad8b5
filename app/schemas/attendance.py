"""
Pydantic schemas for classes, enrollment and attendance.
"""

from pydantic import BaseModel, Field, UUID4
from typing import List, Optional
from datetime import date, datetime

from app.models.attendance import AttendanceStatus


class ClassCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=100)
    grade_level: str = Field(..., min_length=1, max_length=50)
    teacher_id: Optional[UUID4] = None  # Admins may assign another teacher


class ClassResponse(BaseModel):
    id: UUID4
    name: str
    subject: str
    grade_level: str
    class_code: str
    teacher_id: UUID4
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnrollRequest(BaseModel):
    student_ids: List[UUID4] = Field(..., min_length=1)


class StudentSummary(BaseModel):
    """Minimal student profile used in rosters"""
    id: UUID4
    first_name: Optional[str]
    last_name: Optional[str]
    email: str
    student_number: Optional[str] = None
    grade: Optional[str] = None

    class Config:
        from_attributes = True


class AttendanceEntry(BaseModel):
    student_id: UUID4
    status: AttendanceStatus
    notes: Optional[str] = Field(None, max_length=500)


class MarkAttendanceRequest(BaseModel):
    """Full attendance sheet for one class on one date"""
    attendance_date: date
    records: List[AttendanceEntry] = Field(..., min_length=1)


class AttendanceRecordResponse(BaseModel):
    id: UUID4
    class_id: UUID4
    student_id: UUID4
    attendance_date: date
    status: AttendanceStatus
    notes: Optional[str] = None
    marked_by: UUID4
    marked_at: datetime

    class Config:
        from_attributes = True


class AttendanceSummary(BaseModel):
    """
    Attendance rollup.

    percentage counts present and late as attended and is 0 when there
    are no records.
    """
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    total: int = 0
    percentage: int = 0


class ClassAttendanceResponse(BaseModel):
    class_id: UUID4
    attendance_date: date
    records: List[AttendanceRecordResponse]
    summary: AttendanceSummary


class StudentAttendanceResponse(BaseModel):
    student_id: UUID4
    records: List[AttendanceRecordResponse]
    summary: AttendanceSummary


class ParentLinkRequest(BaseModel):
    parent_id: UUID4
    student_id: UUID4
    relationship_type: str = Field("parent", max_length=50)


class ChildResponse(BaseModel):
    id: UUID4
    first_name: Optional[str]
    last_name: Optional[str]
    student_number: Optional[str] = None
    grade: Optional[str] = None
    relationship_type: str
