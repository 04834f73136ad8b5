"""
CRUD operations for announcements and role feeds.
"""

import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.models.announcement import Announcement, AnnouncementType, TargetAudience
from app.models.user import UserRole

# Audience group each role reads besides "all"; staff read everything
ROLE_AUDIENCE = {
    UserRole.STUDENT: TargetAudience.STUDENTS,
    UserRole.TEACHER: TargetAudience.TEACHERS,
    UserRole.PARENT: TargetAudience.PARENTS,
}


def create(
    db: Session,
    author_id: uuid.UUID,
    title: str,
    content: str,
    type: AnnouncementType = AnnouncementType.GENERAL,
    target_audience: TargetAudience = TargetAudience.ALL,
    expires_at: Optional[datetime] = None,
) -> Announcement:
    announcement = Announcement(
        author_id=author_id,
        title=title,
        content=content,
        type=type,
        target_audience=target_audience,
        expires_at=expires_at,
        is_active=True,
        view_count=0,
    )
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    return announcement


def get_by_id(db: Session, announcement_id: uuid.UUID) -> Optional[Announcement]:
    return db.query(Announcement).filter(
        Announcement.id == announcement_id,
        Announcement.is_active == True
    ).first()


def _feed_query(db: Session, role: UserRole, since: Optional[datetime] = None):
    now = utcnow()
    query = db.query(Announcement).filter(
        Announcement.is_active == True,
        or_(Announcement.expires_at.is_(None), Announcement.expires_at > now)
    )
    audience = ROLE_AUDIENCE.get(role)
    if audience is not None:
        query = query.filter(Announcement.target_audience.in_([TargetAudience.ALL, audience]))
    if since is not None:
        query = query.filter(Announcement.created_at > since)
    return query


def get_feed(
    db: Session,
    role: UserRole,
    since: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Announcement]:
    """
    Active, unexpired announcements visible to a role, newest first.

    Args:
        db: Database session
        role: Reader's role; moderators and admins see every audience
        since: Only announcements created after this instant (polling)
        skip: Pagination offset
        limit: Page size
    """
    return _feed_query(db, role, since).order_by(
        Announcement.created_at.desc()
    ).offset(skip).limit(limit).all()


def get_visible(db: Session, announcement_id: uuid.UUID, role: UserRole) -> Optional[Announcement]:
    """Fetch one announcement only if it would appear in the role's feed."""
    return _feed_query(db, role).filter(Announcement.id == announcement_id).first()


def count_feed(db: Session, role: UserRole) -> int:
    return _feed_query(db, role).count()


def record_view(db: Session, announcement: Announcement) -> Announcement:
    announcement.view_count = Announcement.view_count + 1
    db.commit()
    db.refresh(announcement)
    return announcement


def deactivate(db: Session, announcement: Announcement) -> None:
    announcement.is_active = False
    db.commit()
