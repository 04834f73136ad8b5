"""
Pydantic schemas for homework assignments and submissions.
"""

from pydantic import BaseModel, Field, UUID4, model_validator
from typing import List, Optional
from datetime import datetime

from app.models.homework import SubmissionStatus


class HomeworkFile(BaseModel):
    """Metadata of an uploaded file; the bytes live in external storage"""
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., max_length=100)
    size: int = Field(..., ge=0)
    url: str


class AssignmentCreateRequest(BaseModel):
    class_id: UUID4
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    subject: Optional[str] = None  # Defaults to the class subject
    due_date: datetime
    max_grade: int = Field(100, ge=1, le=1000)


class AssignmentResponse(BaseModel):
    id: UUID4
    class_id: UUID4
    teacher_id: UUID4
    title: str
    description: Optional[str] = None
    subject: str
    due_date: datetime
    max_grade: int
    created_at: datetime

    class Config:
        from_attributes = True


class SubmissionCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    files: List[HomeworkFile] = []

    @model_validator(mode="after")
    def require_content(self):
        """A submission needs a description or at least one file."""
        if not self.files and not (self.description and self.description.strip()):
            raise ValueError("Submission must include a description or at least one file")
        return self


class GradeRequest(BaseModel):
    grade: float = Field(..., ge=0)
    feedback: Optional[str] = Field(None, max_length=5000)


class SubmissionResponse(BaseModel):
    id: UUID4
    assignment_id: UUID4
    student_id: UUID4
    title: str
    description: Optional[str] = None
    files: List[HomeworkFile] = []
    status: SubmissionStatus
    grade: Optional[float] = None
    feedback: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HomeworkSummary(BaseModel):
    """
    Homework rollup.

    average_grade is the mean of grade / max_grade * 100 over graded
    submissions, or None when nothing has been graded.
    """
    total: int = 0
    pending: int = 0
    reviewed: int = 0
    graded: int = 0
    average_grade: Optional[float] = None


class ReviewRequest(BaseModel):
    feedback: Optional[str] = Field(None, max_length=5000)
