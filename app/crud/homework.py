"""
CRUD operations for homework assignments and submissions.
"""

import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.models.homework import HomeworkAssignment, HomeworkSubmission, SubmissionStatus
from app.models.school_class import ClassEnrollment
from app.schemas.homework import HomeworkFile


def create_assignment(
    db: Session,
    class_id: uuid.UUID,
    teacher_id: uuid.UUID,
    title: str,
    subject: str,
    due_date: datetime,
    description: Optional[str] = None,
    max_grade: int = 100,
) -> HomeworkAssignment:
    assignment = HomeworkAssignment(
        class_id=class_id,
        teacher_id=teacher_id,
        title=title,
        description=description,
        subject=subject,
        due_date=due_date,
        max_grade=max_grade,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


def get_assignment(db: Session, assignment_id: uuid.UUID) -> Optional[HomeworkAssignment]:
    return db.query(HomeworkAssignment).filter(HomeworkAssignment.id == assignment_id).first()


def get_assignments_for_class(db: Session, class_id: uuid.UUID) -> List[HomeworkAssignment]:
    return db.query(HomeworkAssignment).filter(
        HomeworkAssignment.class_id == class_id
    ).order_by(HomeworkAssignment.due_date.asc()).all()


def get_assignments_for_student(db: Session, student_id: uuid.UUID) -> List[HomeworkAssignment]:
    """Assignments of every class the student is actively enrolled in."""
    return db.query(HomeworkAssignment).join(
        ClassEnrollment, ClassEnrollment.class_id == HomeworkAssignment.class_id
    ).filter(
        ClassEnrollment.student_id == student_id,
        ClassEnrollment.is_active == True
    ).order_by(HomeworkAssignment.due_date.asc()).all()


def get_assignments_for_teacher(db: Session, teacher_id: uuid.UUID) -> List[HomeworkAssignment]:
    return db.query(HomeworkAssignment).filter(
        HomeworkAssignment.teacher_id == teacher_id
    ).order_by(HomeworkAssignment.due_date.asc()).all()


def get_submission(db: Session, submission_id: uuid.UUID) -> Optional[HomeworkSubmission]:
    return db.query(HomeworkSubmission).filter(HomeworkSubmission.id == submission_id).first()


def get_student_submission(db: Session, assignment_id: uuid.UUID, student_id: uuid.UUID) -> Optional[HomeworkSubmission]:
    return db.query(HomeworkSubmission).filter(
        HomeworkSubmission.assignment_id == assignment_id,
        HomeworkSubmission.student_id == student_id
    ).first()


def submit(
    db: Session,
    assignment: HomeworkAssignment,
    student_id: uuid.UUID,
    title: str,
    description: Optional[str],
    files: List[HomeworkFile],
) -> HomeworkSubmission:
    """
    Create or replace a student's submission.

    Resubmitting resets the submission to PENDING. Callers refuse
    resubmission once the work is graded.
    """
    submission = get_student_submission(db, assignment.id, student_id)
    if submission is None:
        submission = HomeworkSubmission(assignment_id=assignment.id, student_id=student_id)
        db.add(submission)

    submission.title = title
    submission.description = description
    submission.files = [f.model_dump() for f in files]
    submission.status = SubmissionStatus.PENDING
    submission.grade = None
    submission.feedback = None
    submission.submitted_at = utcnow()
    submission.reviewed_at = None
    db.commit()
    db.refresh(submission)
    return submission


def get_submissions_for_assignment(db: Session, assignment_id: uuid.UUID) -> List[HomeworkSubmission]:
    return db.query(HomeworkSubmission).filter(
        HomeworkSubmission.assignment_id == assignment_id
    ).order_by(HomeworkSubmission.submitted_at.asc()).all()


def get_submissions_for_student(db: Session, student_id: uuid.UUID) -> List[HomeworkSubmission]:
    return db.query(HomeworkSubmission).filter(
        HomeworkSubmission.student_id == student_id
    ).all()


def count_pending_for_teacher(db: Session, teacher_id: uuid.UUID) -> int:
    return db.query(HomeworkSubmission).join(HomeworkAssignment).filter(
        HomeworkAssignment.teacher_id == teacher_id,
        HomeworkSubmission.status == SubmissionStatus.PENDING
    ).count()


def grade(db: Session, submission: HomeworkSubmission, value: float, feedback: Optional[str]) -> HomeworkSubmission:
    submission.grade = value
    submission.feedback = feedback
    submission.status = SubmissionStatus.GRADED
    submission.reviewed_at = utcnow()
    db.commit()
    db.refresh(submission)
    return submission


def mark_reviewed(db: Session, submission: HomeworkSubmission, feedback: Optional[str] = None) -> HomeworkSubmission:
    submission.status = SubmissionStatus.REVIEWED
    if feedback is not None:
        submission.feedback = feedback
    submission.reviewed_at = utcnow()
    db.commit()
    db.refresh(submission)
    return submission
