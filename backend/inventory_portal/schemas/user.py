from pydantic import EmailStr, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID
from inventory_portal.clock import as_utc
from inventory_portal.config import settings
from inventory_portal.models.user import RoleEnum
from inventory_portal.schemas.common import CamelModel
import re


def _validate_username(v: str) -> str:
    if not re.match(r"^[a-zA-Z0-9_.-]{3,100}$", v):
        raise ValueError("Username must be 3-100 alphanumeric characters")
    return v.lower()


class UserCreate(CamelModel):
    username: str
    email: EmailStr
    password: str
    role: RoleEnum = RoleEnum.ojt
    is_active: bool = True

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _validate_username(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
        return v


class UserUpdate(CamelModel):
    """General profile update. Passwords are not accepted here."""

    username: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[RoleEnum] = None
    is_active: Optional[bool] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        return _validate_username(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else v


class UserResponse(CamelModel):
    id: UUID
    username: str
    email: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @field_validator("created_at", "last_login")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)
