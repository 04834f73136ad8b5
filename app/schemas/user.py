"""
Pydantic schemas for authentication, registration and user management.
"""

from pydantic import BaseModel, EmailStr, Field, UUID4
from typing import Optional
from datetime import datetime
from enum import Enum

from app.models.user import UserRole


class SelfServiceRole(str, Enum):
    """Roles a visitor may pick on the public signup form"""
    STUDENT = "student"
    PARENT = "parent"
    TEACHER = "teacher"


class UserRegisterRequest(BaseModel):
    """
    Request schema for self-service registration.

    Password strength is checked against the school's security policy
    at request time, not here.
    """
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: SelfServiceRole = SelfServiceRole.STUDENT
    phone: Optional[str] = None
    student_number: Optional[str] = None
    grade: Optional[str] = None
    department: Optional[str] = None


class UserLoginRequest(BaseModel):
    """Request schema for user login (OAuth2 compatible)."""
    username: EmailStr  # OAuth2 form field name; holds the email
    password: str


class PasswordChangeRequest(BaseModel):
    """Self-service password change; required after a forced reset."""
    current_password: str
    new_password: str = Field(..., min_length=1, max_length=72)


class UserResponse(BaseModel):
    """User profile response (no sensitive data)."""
    id: UUID4
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: UserRole
    approved: bool
    is_active: bool
    is_system_owner: bool = False
    password_reset_required: bool = False
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    department: Optional[str] = None
    grade: Optional[str] = None
    student_number: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """JWT token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: Optional[UserResponse] = None


class TokenRefreshRequest(BaseModel):
    """Request schema for refreshing access token."""
    refresh_token: str


class RegisterResponse(BaseModel):
    """Registration result; accounts wait for approval before login."""
    message: str
    user: UserResponse


class AdminUserCreateRequest(UserRegisterRequest):
    """Admin-created account; may use any role and is approved immediately."""
    role: UserRole = UserRole.STUDENT
    approved: bool = True


class UserUpdateRequest(BaseModel):
    """Partial profile update by an admin or moderator."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    department: Optional[str] = None
    grade: Optional[str] = None
    student_number: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class SystemOwnerUpdateRequest(BaseModel):
    is_system_owner: bool
