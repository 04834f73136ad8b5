"""
Pydantic schemas for digital ID cards.
"""

from pydantic import BaseModel, UUID4
from typing import List, Optional

from app.schemas.school_config import CardDesign


class IdCardResponse(BaseModel):
    """
    Everything a client needs to render a card.

    qr_payload is the JSON string encoded into the card's QR code:
    {"id", "name", "role", "timestamp"} with timestamp in epoch milliseconds.
    """
    user_id: UUID4
    name: str
    role: str
    identifier: str
    class_name: Optional[str] = None
    department: Optional[str] = None
    photo_url: Optional[str] = None
    email: str
    phone: Optional[str] = None
    fields: List[str]
    design: CardDesign
    school_name: str
    school_logo_url: str
    valid_for: str
    qr_payload: str
