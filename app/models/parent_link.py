import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.core.database import Base, utcnow


class ParentStudentRelationship(Base):
    """Links a parent account to a student account."""
    __tablename__ = "parent_student_relationships"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    parent_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    relationship_type = Column(String, nullable=False, default="parent")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    student = relationship("User", foreign_keys=[student_id])

    __table_args__ = (
        UniqueConstraint('parent_id', 'student_id', name='uq_parent_student'),
    )
