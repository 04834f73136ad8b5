"""
Pydantic schemas for announcements and private messages.
"""

from pydantic import BaseModel, Field, UUID4, field_validator
from typing import Optional
from datetime import datetime

from app.models.announcement import AnnouncementType, TargetAudience


class AnnouncementCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    type: AnnouncementType = AnnouncementType.GENERAL
    target_audience: TargetAudience = TargetAudience.ALL
    expires_at: Optional[datetime] = None


class AnnouncementResponse(BaseModel):
    id: UUID4
    title: str
    content: str
    type: AnnouncementType
    target_audience: TargetAudience
    author_id: Optional[UUID4] = None
    author_name: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    view_count: int

    class Config:
        from_attributes = True


class MessageCreateRequest(BaseModel):
    recipient_id: UUID4
    message: str = Field(..., max_length=5000)

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only messages."""
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v


class MessageResponse(BaseModel):
    id: UUID4
    sender_id: UUID4
    recipient_id: UUID4
    sender_name: Optional[str] = None
    recipient_name: Optional[str] = None
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unread: int
