"""
Role dashboard endpoint.
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_approved_user
from app.models.user import User
from app.services.dashboard import Dashboard, build_dashboard

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=Dashboard)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_approved_user)
):
    """
    Landing-page summary for the caller's role.

    - student: attendance and homework summaries
    - teacher: class, student and pending-submission counts
    - parent: each child's attendance this month
    - moderator/admin: user counts and pending approvals (admins also see
      active verification codes and the last backup)
    """
    return build_dashboard(db, current_user)
