"""
Homework assignments and student submissions.

Files attached to a submission are stored elsewhere; the submission keeps
only their metadata ({name, type, size, url}) in a JSON column.
"""

import enum
import uuid
from sqlalchemy import Column, String, Integer, Float, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.core.database import Base, JSONType, utcnow


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    GRADED = "graded"


class HomeworkAssignment(Base):
    __tablename__ = "homework_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    subject = Column(String, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    max_grade = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    submissions = relationship("HomeworkSubmission", back_populates="assignment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<HomeworkAssignment(id={self.id}, title='{self.title}')>"


class HomeworkSubmission(Base):
    """A student's submission for one assignment; at most one per student."""
    __tablename__ = "homework_submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    assignment_id = Column(Uuid, ForeignKey("homework_assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    files = Column(JSONType, nullable=False, default=list)

    status = Column(Enum(SubmissionStatus), nullable=False, default=SubmissionStatus.PENDING, index=True)
    grade = Column(Float, nullable=True)
    feedback = Column(String, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    assignment = relationship("HomeworkAssignment", back_populates="submissions")
    student = relationship("User")

    __table_args__ = (
        UniqueConstraint('assignment_id', 'student_id', name='uq_homework_submission_student'),
    )
