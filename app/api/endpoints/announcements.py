"""
Announcement endpoints.

Teachers, moderators and admins publish announcements; every approved user
reads the feed for their role. Clients poll with `since` for new items.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_approved_user, require_roles
from app.core.exceptions import AuthorizationError, NotFoundError
from app.crud import announcement as announcement_crud
from app.models.announcement import Announcement
from app.models.user import User, UserRole
from app.schemas.announcement import AnnouncementCreateRequest, AnnouncementResponse

router = APIRouter(prefix="/announcements", tags=["Announcements"])
logger = logging.getLogger(__name__)


def to_response(announcement: Announcement) -> AnnouncementResponse:
    response = AnnouncementResponse.model_validate(announcement)
    if announcement.author is not None:
        response.author_name = announcement.author.display_name
    return response


@router.post("/", status_code=201, response_model=AnnouncementResponse)
def create_announcement(
    request: AnnouncementCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.TEACHER, UserRole.MODERATOR, UserRole.ADMIN))
):
    announcement = announcement_crud.create(
        db,
        author_id=current_user.id,
        title=request.title,
        content=request.content,
        type=request.type,
        target_audience=request.target_audience,
        expires_at=request.expires_at,
    )
    logger.info(f"Announcement {announcement.id} published by {current_user.id} for {request.target_audience.value}")
    return to_response(announcement)


@router.get("/", response_model=List[AnnouncementResponse])
def list_announcements(
    since: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """
    Feed for the caller's role, newest first.

    Pass the created_at of the newest item already shown as `since` to
    fetch only newer announcements.
    """
    feed = announcement_crud.get_feed(db, current_user.role, since=since, skip=skip, limit=limit)
    return [to_response(a) for a in feed]


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
def read_announcement(
    announcement_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """Open one announcement; counts as a view."""
    announcement = announcement_crud.get_visible(db, announcement_id, current_user.role)
    if not announcement:
        raise NotFoundError("Announcement not found")
    announcement = announcement_crud.record_view(db, announcement)
    return to_response(announcement)


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """Withdraw an announcement (author or admin). The row is kept, inactive."""
    announcement = announcement_crud.get_by_id(db, announcement_id)
    if not announcement:
        raise NotFoundError("Announcement not found")
    if current_user.role != UserRole.ADMIN and announcement.author_id != current_user.id:
        raise AuthorizationError("Only the author or an admin can delete this announcement")

    announcement_crud.deactivate(db, announcement)
    logger.info(f"Announcement {announcement_id} withdrawn by {current_user.id}")
    return {"message": "Announcement deleted"}
