"""
Digital ID card assembly.
"""

import json
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.exceptions import NotFoundError
from app.crud import school_class as class_crud
from app.crud import school_config as config_crud
from app.models.user import User, UserRole
from app.schemas.id_card import IdCardResponse

# Which configured field list each role's card uses; parents get no card
CARD_FIELD_GROUPS = {
    UserRole.STUDENT: "student",
    UserRole.TEACHER: "teacher",
    UserRole.MODERATOR: "admin",
    UserRole.ADMIN: "admin",
}


def academic_year(now: datetime) -> str:
    """Academic year label such as "2026-2027"."""
    return f"{now.year}-{now.year + 1}"


def build_qr_payload(identifier: str, name: str, role: str, now: datetime) -> str:
    return json.dumps({
        "id": identifier,
        "name": name,
        "role": role,
        "timestamp": int(now.timestamp() * 1000),
    })


def build_id_card(db: Session, user: User, now: Optional[datetime] = None) -> IdCardResponse:
    """
    Assemble the ID card for a user from their profile and the school's
    id_card_settings.

    Students are identified by their student number (falling back to the
    account id) and show their first enrolled class, or their grade.

    Raises:
        NotFoundError: The account's role has no ID card
    """
    group = CARD_FIELD_GROUPS.get(user.role)
    if group is None:
        raise NotFoundError("No ID card is issued for this account")

    now = now or utcnow()
    card_settings = config_crud.get_id_card_settings(db)
    school = config_crud.get_school_info(db)

    identifier = str(user.id)
    class_name = None
    if user.role == UserRole.STUDENT:
        identifier = user.student_number or identifier
        classes = class_crud.get_for_user(db, user)
        class_name = classes[0].name if classes else user.grade

    return IdCardResponse(
        user_id=user.id,
        name=user.display_name,
        role=user.role.value,
        identifier=identifier,
        class_name=class_name,
        department=user.department if user.role != UserRole.STUDENT else None,
        photo_url=user.avatar_url,
        email=user.email,
        phone=user.phone,
        fields=getattr(card_settings.fields, group),
        design=card_settings.design,
        school_name=school.name,
        school_logo_url=school.logo_url,
        valid_for=academic_year(now),
        qr_payload=build_qr_payload(identifier, user.display_name, user.role.value, now),
    )
