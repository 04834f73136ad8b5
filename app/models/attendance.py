import enum
import uuid
from sqlalchemy import Column, String, Date, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.core.database import Base, utcnow


class AttendanceStatus(str, enum.Enum):
    """
    Daily attendance status.

    PRESENT and LATE both count as attended when computing percentages.
    """
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class AttendanceRecord(Base):
    """One student's attendance for one class on one date."""
    __tablename__ = "attendance_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    attendance_date = Column(Date, nullable=False, index=True)
    status = Column(Enum(AttendanceStatus), nullable=False)
    notes = Column(String, nullable=True)

    marked_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    marked_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    school_class = relationship("SchoolClass")

    __table_args__ = (
        UniqueConstraint('class_id', 'student_id', 'attendance_date', name='uq_attendance_class_student_date'),
    )

    def __repr__(self):
        return f"<AttendanceRecord(student_id={self.student_id}, date={self.attendance_date}, status={self.status.value})>"
