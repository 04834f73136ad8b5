"""
User model for authentication and role-based access.

Each User is one portal account: a student, teacher, parent, moderator or
admin. New accounts must be approved by an admin or moderator before they
can sign in (admins are exempt).
"""

import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Enum, Uuid, func
from app.core.database import Base


class UserRole(str, enum.Enum):
    """Portal roles, lowest to highest privilege."""
    STUDENT = "student"
    PARENT = "parent"
    TEACHER = "teacher"
    MODERATOR = "moderator"
    ADMIN = "admin"


class User(Base):
    """
    Portal account with profile data.

    is_system_owner marks the single account allowed to run destructive
    system operations (deleting users, purging logs, mass password resets,
    issuing admin verification codes).
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Authentication credentials
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)

    # Profile
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    department = Column(String, nullable=True)  # Teachers and staff
    grade = Column(String, nullable=True)  # Students
    student_number = Column(String, nullable=True, unique=True)

    # Role and account status
    role = Column(Enum(UserRole), nullable=False, default=UserRole.STUDENT, index=True)
    approved = Column(Boolean, default=False, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_system_owner = Column(Boolean, default=False, nullable=False)
    password_reset_required = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role.value})>"
