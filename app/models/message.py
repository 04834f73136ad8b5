import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from app.core.database import Base, utcnow


class PrivateMessage(Base):
    """Direct message between two portal users."""
    __tablename__ = "private_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    sender_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(String, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])

    __table_args__ = (
        Index('ix_private_messages_recipient_created', 'recipient_id', 'created_at'),
    )
