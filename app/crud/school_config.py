"""
CRUD operations for school-wide settings.

Settings are stored as JSON rows keyed by config_key and always returned
as their typed pydantic model, falling back to defaults for missing keys.
"""

import logging
import uuid
from typing import Optional
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.models.school_config import SchoolConfig
from app.schemas.school_config import (
    CONFIG_MODELS,
    SchoolInfo,
    SecuritySettings,
    IdCardSettings,
    BackupSettings,
)

logger = logging.getLogger(__name__)


def get(db: Session, config_key: str) -> BaseModel:
    """
    Load settings for a key.

    Args:
        db: Database session
        config_key: One of CONFIG_MODELS

    Returns:
        Settings model; defaults when nothing has been saved yet
    """
    model = CONFIG_MODELS[config_key]
    row = db.query(SchoolConfig).filter(SchoolConfig.config_key == config_key).first()
    if row is None:
        return model()
    return model.model_validate(row.config_value)


def save(db: Session, config_key: str, value: BaseModel, updated_by: Optional[uuid.UUID] = None) -> BaseModel:
    """Insert or replace the settings stored under config_key."""
    model = CONFIG_MODELS[config_key]
    value = model.model_validate(value.model_dump())

    row = db.query(SchoolConfig).filter(SchoolConfig.config_key == config_key).first()
    if row is None:
        row = SchoolConfig(config_key=config_key)
        db.add(row)
    row.config_value = value.model_dump(mode="json")
    row.updated_by = updated_by
    db.commit()

    logger.info(f"School config '{config_key}' updated by {updated_by}")
    return value


def reset(db: Session, config_key: str, updated_by: Optional[uuid.UUID] = None) -> BaseModel:
    """Restore defaults for a key."""
    return save(db, config_key, CONFIG_MODELS[config_key](), updated_by)


def get_school_info(db: Session) -> SchoolInfo:
    return get(db, "school_info")


def get_security_settings(db: Session) -> SecuritySettings:
    return get(db, "security_settings")


def get_id_card_settings(db: Session) -> IdCardSettings:
    return get(db, "id_card_settings")


def get_backup_settings(db: Session) -> BackupSettings:
    return get(db, "backup_settings")
