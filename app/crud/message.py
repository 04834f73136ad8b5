"""
CRUD operations for private messages.
"""

import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.message import PrivateMessage


def send(db: Session, sender_id: uuid.UUID, recipient_id: uuid.UUID, message: str) -> PrivateMessage:
    msg = PrivateMessage(sender_id=sender_id, recipient_id=recipient_id, message=message, is_read=False)
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return msg


def get_by_id(db: Session, message_id: uuid.UUID) -> Optional[PrivateMessage]:
    return db.query(PrivateMessage).filter(PrivateMessage.id == message_id).first()


def get_inbox(
    db: Session,
    recipient_id: uuid.UUID,
    since: Optional[datetime] = None,
    unread_only: bool = False,
    limit: int = 100,
) -> List[PrivateMessage]:
    """Messages received by a user, newest first. `since` supports polling."""
    query = db.query(PrivateMessage).filter(PrivateMessage.recipient_id == recipient_id)
    if since is not None:
        query = query.filter(PrivateMessage.created_at > since)
    if unread_only:
        query = query.filter(PrivateMessage.is_read == False)
    return query.order_by(PrivateMessage.created_at.desc()).limit(limit).all()


def get_sent(db: Session, sender_id: uuid.UUID, limit: int = 100) -> List[PrivateMessage]:
    return db.query(PrivateMessage).filter(
        PrivateMessage.sender_id == sender_id
    ).order_by(PrivateMessage.created_at.desc()).limit(limit).all()


def count_unread(db: Session, recipient_id: uuid.UUID) -> int:
    return db.query(PrivateMessage).filter(
        PrivateMessage.recipient_id == recipient_id,
        PrivateMessage.is_read == False
    ).count()


def mark_read(db: Session, msg: PrivateMessage) -> PrivateMessage:
    msg.is_read = True
    db.commit()
    db.refresh(msg)
    return msg
