from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Uuid, func
from app.core.database import Base, JSONType


class SchoolConfig(Base):
    """
    Key/value store for school-wide settings.

    config_value holds the JSON dump of the matching pydantic settings model
    (see app.schemas.school_config).
    """
    __tablename__ = "school_config"

    id = Column(Integer, primary_key=True, index=True)
    config_key = Column(String(64), nullable=False, unique=True, index=True)
    config_value = Column(JSONType, nullable=False)
    updated_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SchoolConfig(key='{self.config_key}')>"
