import enum
import uuid
from sqlalchemy import Column, String, Boolean, Integer, DateTime, Enum, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.core.database import Base, utcnow


class AnnouncementType(str, enum.Enum):
    GENERAL = "general"
    URGENT = "urgent"
    EVENT = "event"
    ACADEMIC = "academic"


class TargetAudience(str, enum.Enum):
    ALL = "all"
    STUDENTS = "students"
    TEACHERS = "teachers"
    PARENTS = "parents"


class Announcement(Base):
    """
    School announcement shown in role feeds.

    Deleting an announcement only clears is_active so view counts survive.
    """
    __tablename__ = "announcements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(200), nullable=False)
    content = Column(String, nullable=False)
    type = Column(Enum(AnnouncementType), nullable=False, default=AnnouncementType.GENERAL)
    target_audience = Column(Enum(TargetAudience), nullable=False, default=TargetAudience.ALL, index=True)
    author_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    view_count = Column(Integer, nullable=False, default=0)

    author = relationship("User")

    def __repr__(self):
        return f"<Announcement(id={self.id}, title='{self.title}', audience={self.target_audience.value})>"
