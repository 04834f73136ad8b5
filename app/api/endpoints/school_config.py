"""
School configuration endpoints.

- GET /school-info: public school details for any signed-in user
- GET /admin/school-config: every settings group
- GET/PUT /admin/school-config/{config_key}: read or replace one group
- POST /admin/school-config/{config_key}/reset: restore defaults
"""

import logging
from typing import Any, Dict
from fastapi import APIRouter, Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_admin_user, get_current_user
from app.core.exceptions import NotFoundError, ValidationError
from app.crud import school_config as config_crud
from app.models.user import User
from app.schemas.school_config import CONFIG_MODELS, SchoolInfo

router = APIRouter(tags=["School Configuration"])
logger = logging.getLogger(__name__)


def _check_key(config_key: str) -> None:
    if config_key not in CONFIG_MODELS:
        raise NotFoundError(f"Unknown configuration key: {config_key}")


@router.get("/school-info", response_model=SchoolInfo)
def get_school_info(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return config_crud.get_school_info(db)


@router.get("/admin/school-config")
def get_all_config(
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
) -> Dict[str, Any]:
    return {key: config_crud.get(db, key).model_dump(mode="json") for key in CONFIG_MODELS}


@router.get("/admin/school-config/{config_key}")
def get_config(
    config_key: str,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
) -> Dict[str, Any]:
    _check_key(config_key)
    return config_crud.get(db, config_key).model_dump(mode="json")


@router.put("/admin/school-config/{config_key}")
def update_config(
    config_key: str,
    payload: Dict[str, Any],
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
) -> Dict[str, Any]:
    """
    Replace one settings group.

    The body is validated against that group's model; omitted fields take
    their defaults.
    """
    _check_key(config_key)
    try:
        value = CONFIG_MODELS[config_key].model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid {config_key} setting '{field}': {first['msg']}")

    saved = config_crud.save(db, config_key, value, updated_by=admin_user.id)
    return saved.model_dump(mode="json")


@router.post("/admin/school-config/{config_key}/reset")
def reset_config(
    config_key: str,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
) -> Dict[str, Any]:
    _check_key(config_key)
    return config_crud.reset(db, config_key, updated_by=admin_user.id).model_dump(mode="json")
