"""
Private message endpoints.

Realtime delivery is replaced by polling: clients call GET /messages/inbox
with `since` set to the newest message they already have.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_approved_user
from app.core.exceptions import NotFoundError, ValidationError
from app.crud import message as message_crud
from app.crud import user as user_crud
from app.models.message import PrivateMessage
from app.models.user import User, UserRole
from app.schemas.announcement import MessageCreateRequest, MessageResponse, UnreadCountResponse

router = APIRouter(prefix="/messages", tags=["Messages"])
logger = logging.getLogger(__name__)


def to_response(msg: PrivateMessage) -> MessageResponse:
    response = MessageResponse.model_validate(msg)
    response.sender_name = msg.sender.display_name if msg.sender else None
    response.recipient_name = msg.recipient.display_name if msg.recipient else None
    return response


@router.post("/", status_code=201, response_model=MessageResponse)
def send_message(
    request: MessageCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """Send a message to another approved, active user."""
    if request.recipient_id == current_user.id:
        raise ValidationError("You cannot send a message to yourself")

    recipient = user_crud.get_by_id(db, request.recipient_id)
    if (
        not recipient
        or not recipient.is_active
        or (not recipient.approved and recipient.role != UserRole.ADMIN)
    ):
        raise NotFoundError("Recipient not found")

    msg = message_crud.send(db, current_user.id, recipient.id, request.message)
    logger.info(f"Message {msg.id} sent from {current_user.id} to {recipient.id}")
    return to_response(msg)


@router.get("/inbox", response_model=List[MessageResponse])
def get_inbox(
    since: Optional[datetime] = None,
    unread_only: bool = False,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    messages = message_crud.get_inbox(db, current_user.id, since=since, unread_only=unread_only, limit=limit)
    return [to_response(m) for m in messages]


@router.get("/sent", response_model=List[MessageResponse])
def get_sent(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    return [to_response(m) for m in message_crud.get_sent(db, current_user.id, limit=limit)]


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    return UnreadCountResponse(unread=message_crud.count_unread(db, current_user.id))


@router.post("/{message_id}/read", response_model=MessageResponse)
def mark_message_read(
    message_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """Mark a received message as read. Only the recipient may do this."""
    msg = message_crud.get_by_id(db, message_id)
    if not msg or msg.recipient_id != current_user.id:
        raise NotFoundError("Message not found")
    return to_response(message_crud.mark_read(db, msg))
