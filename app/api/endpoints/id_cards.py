"""
Digital ID card endpoints.
"""

import logging
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_admin_user, get_approved_user
from app.core.exceptions import NotFoundError
from app.crud import user as user_crud
from app.models.user import User
from app.schemas.id_card import IdCardResponse
from app.services.id_cards import build_id_card

router = APIRouter(prefix="/id-cards", tags=["ID Cards"])
logger = logging.getLogger(__name__)


@router.get("/me", response_model=IdCardResponse)
def get_my_id_card(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """The caller's own card, rendered with the school's card settings."""
    return build_id_card(db, current_user)


@router.get("/{user_id}", response_model=IdCardResponse)
def get_user_id_card(
    user_id: UUID,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user)
):
    """Any user's card, for printing by an admin."""
    user = user_crud.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return build_id_card(db, user)
