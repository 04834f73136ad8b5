"""
Homework endpoints.

Teachers post assignments to their classes and grade submissions; students
in the class submit work (file metadata only, the files live in external
storage).
"""

import logging
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.endpoints.classes import ensure_can_manage, ensure_can_view, get_class_or_404, get_teacher_or_admin
from app.core.database import get_db
from app.core.deps import get_approved_user, require_roles
from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.crud import homework as homework_crud
from app.crud import school_class as class_crud
from app.models.homework import HomeworkAssignment, HomeworkSubmission, SubmissionStatus
from app.models.user import User, UserRole
from app.schemas.homework import (
    AssignmentCreateRequest,
    AssignmentResponse,
    GradeRequest,
    ReviewRequest,
    SubmissionCreateRequest,
    SubmissionResponse,
)

router = APIRouter(prefix="/homework", tags=["Homework"])
logger = logging.getLogger(__name__)


def _get_assignment_or_404(db: Session, assignment_id: UUID) -> HomeworkAssignment:
    assignment = homework_crud.get_assignment(db, assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment


def _get_submission_for_grading(db: Session, submission_id: UUID, user: User) -> HomeworkSubmission:
    submission = homework_crud.get_submission(db, submission_id)
    if not submission:
        raise NotFoundError("Submission not found")
    ensure_can_manage(user, get_class_or_404(db, submission.assignment.class_id))
    return submission


@router.post("/", status_code=201, response_model=AssignmentResponse)
def create_assignment(
    request: AssignmentCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    """Post an assignment to a class. Subject defaults to the class subject."""
    school_class = get_class_or_404(db, request.class_id)
    ensure_can_manage(current_user, school_class)

    assignment = homework_crud.create_assignment(
        db,
        class_id=school_class.id,
        teacher_id=school_class.teacher_id,
        title=request.title,
        subject=request.subject or school_class.subject,
        due_date=request.due_date,
        description=request.description,
        max_grade=request.max_grade,
    )
    logger.info(f"Assignment {assignment.id} created for class {school_class.class_code}")
    return assignment


@router.get("/", response_model=List[AssignmentResponse])
def list_assignments(
    class_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """
    Assignments visible to the caller.

    With class_id, the assignments of that class. Without it, teachers get
    their own assignments and students those of their enrolled classes.
    """
    if class_id is not None:
        school_class = get_class_or_404(db, class_id)
        ensure_can_view(db, current_user, school_class)
        return homework_crud.get_assignments_for_class(db, school_class.id)

    if current_user.role == UserRole.TEACHER:
        return homework_crud.get_assignments_for_teacher(db, current_user.id)
    if current_user.role == UserRole.STUDENT:
        return homework_crud.get_assignments_for_student(db, current_user.id)
    raise ValidationError("class_id is required")


@router.get("/submissions/me", response_model=List[SubmissionResponse])
def list_my_submissions(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.STUDENT))
):
    return homework_crud.get_submissions_for_student(db, current_user.id)


@router.post("/{assignment_id}/submissions", status_code=201, response_model=SubmissionResponse)
def submit_homework(
    assignment_id: UUID,
    request: SubmissionCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.STUDENT))
):
    """
    Submit (or resubmit) work for an assignment.

    Only students enrolled in the assignment's class may submit. A
    resubmission replaces a pending or reviewed submission; once graded,
    the submission is final.
    """
    assignment = _get_assignment_or_404(db, assignment_id)
    if not class_crud.is_enrolled(db, assignment.class_id, current_user.id):
        raise AuthorizationError("You are not enrolled in this class")

    existing = homework_crud.get_student_submission(db, assignment.id, current_user.id)
    if existing is not None and existing.status == SubmissionStatus.GRADED:
        raise ConflictError("This submission has already been graded")

    submission = homework_crud.submit(
        db,
        assignment,
        student_id=current_user.id,
        title=request.title,
        description=request.description,
        files=request.files,
    )
    logger.info(f"Student {current_user.id} submitted homework for assignment {assignment.id}")
    return submission


@router.get("/{assignment_id}/submissions", response_model=List[SubmissionResponse])
def list_submissions(
    assignment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    assignment = _get_assignment_or_404(db, assignment_id)
    ensure_can_manage(current_user, get_class_or_404(db, assignment.class_id))
    return homework_crud.get_submissions_for_assignment(db, assignment.id)


@router.post("/submissions/{submission_id}/grade", response_model=SubmissionResponse)
def grade_submission(
    submission_id: UUID,
    request: GradeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    """Grade a submission (0 to the assignment's max_grade)."""
    submission = _get_submission_for_grading(db, submission_id, current_user)
    max_grade = submission.assignment.max_grade
    if request.grade > max_grade:
        raise ValidationError(f"Grade must be between 0 and {max_grade}")

    submission = homework_crud.grade(db, submission, request.grade, request.feedback)
    logger.info(f"Submission {submission.id} graded {request.grade}/{max_grade} by {current_user.id}")
    return submission


@router.post("/submissions/{submission_id}/review", response_model=SubmissionResponse)
def review_submission(
    submission_id: UUID,
    request: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_teacher_or_admin)
):
    """Mark a submission reviewed without grading it."""
    submission = _get_submission_for_grading(db, submission_id, current_user)
    feedback = request.feedback if request else None
    return homework_crud.mark_reviewed(db, submission, feedback)
