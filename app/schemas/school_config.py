"""
Typed school-wide settings.

Each model maps to one row of the school_config table (CONFIG_MODELS gives
the key). Defaults match what a freshly installed school sees.
"""

from pydantic import BaseModel, Field
from typing import Dict, List
from enum import Enum


class SchoolInfo(BaseModel):
    name: str = "Digital Academy High School"
    address: str = "123 Education Street, Learning City, LC 12345"
    phone: str = "+1 (555) 123-4567"
    email: str = "info@digitalacademy.edu"
    website: str = "www.digitalacademy.edu"
    description: str = "Excellence in Education Through Innovation and Technology"
    logo_url: str = "/assets/school-logo.png"


class PasswordPolicy(BaseModel):
    min_length: int = Field(8, ge=6, le=72)
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_special_chars: bool = False
    prevent_reuse: int = Field(5, ge=0, le=24)
    expiration_days: int = Field(90, ge=0)


class SecuritySettings(BaseModel):
    two_factor_auth: bool = False
    session_timeout: int = Field(30, ge=5, le=1440, description="Minutes")
    max_login_attempts: int = Field(5, ge=1, le=20)
    lockout_duration: int = Field(15, ge=1, description="Minutes")
    ip_whitelist: List[str] = []
    audit_logging: bool = True
    password_policy: PasswordPolicy = PasswordPolicy()


class CardTemplate(str, Enum):
    MODERN = "modern"
    CLASSIC = "classic"
    MINIMAL = "minimal"


class LogoPosition(str, Enum):
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"


class CardDesign(BaseModel):
    template: CardTemplate = CardTemplate.MODERN
    primary_color: str = Field("#1e40af", pattern=r"^#[0-9a-fA-F]{6}$")
    secondary_color: str = Field("#7c3aed", pattern=r"^#[0-9a-fA-F]{6}$")
    background_color: str = Field("#ffffff", pattern=r"^#[0-9a-fA-F]{6}$")
    font_family: str = "Arial"
    logo_position: LogoPosition = LogoPosition.TOP_CENTER
    include_qr_code: bool = True
    include_barcode: bool = False


# Fields an ID card may show, per role
AVAILABLE_CARD_FIELDS: Dict[str, List[str]] = {
    "student": ["name", "id", "class", "grade", "photo", "bloodType", "emergencyContact", "qrCode", "barcode"],
    "teacher": ["name", "id", "department", "subject", "photo", "phone", "email", "qrCode", "barcode"],
    "admin": ["name", "id", "title", "department", "photo", "phone", "email", "qrCode", "barcode"],
}


class CardFields(BaseModel):
    student: List[str] = ["name", "id", "class", "photo", "qrCode"]
    teacher: List[str] = ["name", "id", "department", "photo", "qrCode"]
    admin: List[str] = ["name", "id", "title", "photo", "qrCode"]


class IdCardSettings(BaseModel):
    design: CardDesign = CardDesign()
    fields: CardFields = CardFields()


class BackupFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class BackupSettings(BaseModel):
    auto_backup: bool = True
    frequency: BackupFrequency = BackupFrequency.DAILY
    time: str = Field("02:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    retention_days: int = Field(30, ge=1, le=3650)
    include_files: bool = True
    include_user_data: bool = True
    compress_backups: bool = True
    encrypt_backups: bool = True


CONFIG_MODELS = {
    "school_info": SchoolInfo,
    "security_settings": SecuritySettings,
    "id_card_settings": IdCardSettings,
    "backup_settings": BackupSettings,
}
