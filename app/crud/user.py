"""
CRUD operations for User accounts and the approval workflow.
"""

import logging
import uuid
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.security import get_password_hash
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


def get_by_id(db: Session, user_id: uuid.UUID) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def create(
    db: Session,
    email: str,
    password: str,
    role: UserRole,
    approved: bool = False,
    **profile,
) -> User:
    """
    Create a user account.

    Args:
        db: Database session
        email: Login email (stored lower-cased)
        password: Plain password, hashed here
        role: Portal role
        approved: Whether the account can sign in immediately
        **profile: first_name, last_name, phone, student_number, grade, department

    Returns:
        Created User
    """
    user = User(
        id=uuid.uuid4(),
        email=email.lower(),
        hashed_password=get_password_hash(password),
        role=role,
        approved=approved,
        is_active=True,
        **profile,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_multi(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    role: Optional[UserRole] = None,
    approved: Optional[bool] = None,
) -> List[User]:
    """List users with optional role/approval filters, newest first."""
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    if approved is not None:
        query = query.filter(User.approved == approved)
    return query.order_by(User.created_at.desc()).offset(skip).limit(limit).all()


def get_pending(db: Session) -> List[User]:
    """Active accounts waiting for approval (admins never wait)."""
    return db.query(User).filter(
        User.approved == False,
        User.is_active == True,
        User.role != UserRole.ADMIN
    ).order_by(User.created_at.asc()).all()


def approve(db: Session, user: User) -> User:
    user.approved = True
    user.is_active = True
    db.commit()
    db.refresh(user)
    return user


def reject(db: Session, user: User) -> User:
    """Rejected registrations are kept but deactivated."""
    user.approved = False
    user.is_active = False
    db.commit()
    db.refresh(user)
    return user


def set_password(db: Session, user: User, password: str) -> User:
    """Store a new password and clear any pending forced reset."""
    user.hashed_password = get_password_hash(password)
    user.password_reset_required = False
    db.commit()
    db.refresh(user)
    return user


def update(db: Session, user: User, changes: Dict) -> User:
    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def count_by_role(db: Session) -> Dict[str, int]:
    """Number of users per role, every role present."""
    counts = {role.value: 0 for role in UserRole}
    rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
    for role, count in rows:
        counts[role.value] = count
    return counts


def count_pending(db: Session) -> int:
    return db.query(func.count(User.id)).filter(
        User.approved == False,
        User.is_active == True,
        User.role != UserRole.ADMIN
    ).scalar() or 0
