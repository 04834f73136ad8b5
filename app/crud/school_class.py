"""
CRUD operations for classes, enrollments and parent/student links.
"""

import secrets
import string
import uuid
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.parent_link import ParentStudentRelationship
from app.models.school_class import SchoolClass, ClassEnrollment
from app.models.user import User, UserRole

CLASS_CODE_LENGTH = 6


def generate_class_code(db: Session) -> str:
    """Random, unused class code such as 'K7QX2M'."""
    alphabet = string.ascii_uppercase + string.digits
    while True:
        code = ''.join(secrets.choice(alphabet) for _ in range(CLASS_CODE_LENGTH))
        if not db.query(SchoolClass).filter(SchoolClass.class_code == code).first():
            return code


def create(db: Session, name: str, subject: str, grade_level: str, teacher_id: uuid.UUID) -> SchoolClass:
    school_class = SchoolClass(
        name=name,
        subject=subject,
        grade_level=grade_level,
        teacher_id=teacher_id,
        class_code=generate_class_code(db),
        is_active=True,
    )
    db.add(school_class)
    db.commit()
    db.refresh(school_class)
    return school_class


def get_by_id(db: Session, class_id: uuid.UUID) -> Optional[SchoolClass]:
    return db.query(SchoolClass).filter(SchoolClass.id == class_id).first()


def get_for_user(db: Session, user: User) -> List[SchoolClass]:
    """
    Classes visible to a user.

    Teachers see the classes they teach, students the classes they are
    enrolled in, staff see every active class.
    """
    query = db.query(SchoolClass).filter(SchoolClass.is_active == True)
    if user.role == UserRole.TEACHER:
        query = query.filter(SchoolClass.teacher_id == user.id)
    elif user.role == UserRole.STUDENT:
        query = query.join(ClassEnrollment).filter(
            ClassEnrollment.student_id == user.id,
            ClassEnrollment.is_active == True
        )
    elif user.role == UserRole.PARENT:
        return []
    return query.order_by(SchoolClass.name).all()


def enroll(db: Session, school_class: SchoolClass, student_ids: List[uuid.UUID]) -> List[ClassEnrollment]:
    """Enroll students, reactivating earlier enrollments instead of duplicating them."""
    enrollments = []
    for student_id in student_ids:
        enrollment = db.query(ClassEnrollment).filter(
            ClassEnrollment.class_id == school_class.id,
            ClassEnrollment.student_id == student_id
        ).first()
        if enrollment is None:
            enrollment = ClassEnrollment(class_id=school_class.id, student_id=student_id, is_active=True)
            db.add(enrollment)
        else:
            enrollment.is_active = True
        enrollments.append(enrollment)
    db.commit()
    return enrollments


def unenroll(db: Session, school_class: SchoolClass, student_id: uuid.UUID) -> bool:
    enrollment = db.query(ClassEnrollment).filter(
        ClassEnrollment.class_id == school_class.id,
        ClassEnrollment.student_id == student_id,
        ClassEnrollment.is_active == True
    ).first()
    if enrollment is None:
        return False
    enrollment.is_active = False
    db.commit()
    return True


def get_roster(db: Session, class_id: uuid.UUID) -> List[User]:
    """Actively enrolled students, ordered by name."""
    return db.query(User).join(ClassEnrollment, ClassEnrollment.student_id == User.id).filter(
        ClassEnrollment.class_id == class_id,
        ClassEnrollment.is_active == True
    ).order_by(User.last_name, User.first_name).all()


def is_enrolled(db: Session, class_id: uuid.UUID, student_id: uuid.UUID) -> bool:
    return db.query(ClassEnrollment).filter(
        ClassEnrollment.class_id == class_id,
        ClassEnrollment.student_id == student_id,
        ClassEnrollment.is_active == True
    ).first() is not None


def link_parent(db: Session, parent_id: uuid.UUID, student_id: uuid.UUID, relationship_type: str = "parent") -> ParentStudentRelationship:
    link = db.query(ParentStudentRelationship).filter(
        ParentStudentRelationship.parent_id == parent_id,
        ParentStudentRelationship.student_id == student_id
    ).first()
    if link is None:
        link = ParentStudentRelationship(parent_id=parent_id, student_id=student_id)
        db.add(link)
    link.relationship_type = relationship_type
    db.commit()
    db.refresh(link)
    return link


def get_children(db: Session, parent_id: uuid.UUID) -> List[ParentStudentRelationship]:
    return db.query(ParentStudentRelationship).filter(
        ParentStudentRelationship.parent_id == parent_id
    ).all()


def is_parent_of(db: Session, parent_id: uuid.UUID, student_id: uuid.UUID) -> bool:
    return db.query(ParentStudentRelationship).filter(
        ParentStudentRelationship.parent_id == parent_id,
        ParentStudentRelationship.student_id == student_id
    ).first() is not None
