import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship
from app.core.database import Base, utcnow


class SchoolClass(Base):
    """A taught class (subject + grade level) owned by one teacher."""
    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    grade_level = Column(String, nullable=False)
    class_code = Column(String(12), nullable=False, unique=True, index=True)
    teacher_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    enrollments = relationship("ClassEnrollment", back_populates="school_class", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<SchoolClass(id={self.id}, code='{self.class_code}', name='{self.name}')>"


class ClassEnrollment(Base):
    __tablename__ = "class_enrollments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    enrolled_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    school_class = relationship("SchoolClass", back_populates="enrollments")
    student = relationship("User")

    __table_args__ = (
        UniqueConstraint('class_id', 'student_id', name='uq_class_enrollments_class_student'),
    )
