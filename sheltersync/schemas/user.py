"""User-related schemas."""

from __future__ import annotations

import re
import uuid
from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    field_validator,
)

from sheltersync.models.user import UserRole
from sheltersync.schemas.common import Pagination

_ALLOWED_DEV_EMAIL_DOMAINS = {"sheltersync.local"}
_EMAIL_ADAPTER = TypeAdapter(EmailStr)
_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%^&*])")


def _validate_relaxed_email(value: str) -> str:
    """Allow placeholder domains (e.g. *.local) while keeping core validation."""

    email = value.strip()
    try:
        return _EMAIL_ADAPTER.validate_python(email)
    except ValueError:
        local_part, _, domain = email.partition("@")
        if local_part and domain:
            if domain.endswith(".local") or domain in _ALLOWED_DEV_EMAIL_DOMAINS:
                return email
        raise


def validate_password_strength(value: str) -> str:
    if not _PASSWORD_RULE.match(value):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase "
            "letter, one number, and one special character"
        )
    return value


class UserCreate(BaseModel):
    """Signup payload."""

    name: str = Field(min_length=2, max_length=50)
    email: str
    password: str = Field(min_length=8)
    role: UserRole = UserRole.ADOPTER
    location: str | None = Field(default=None, min_length=2, max_length=100)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _validate_relaxed_email(value)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @field_validator("role")
    @classmethod
    def _validate_role(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("Role must be either adopter or shelter")
        return value


class UserRead(BaseModel):
    """Serialized user response; credentials never leave the service."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    location: str | None = None
    is_active: bool
    email_verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    """Profile fields a user may change on their own account."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    location: str | None = Field(default=None, min_length=2, max_length=100)


class RoleUpdate(BaseModel):
    """Admin payload to switch a user between adopter and shelter."""

    role: UserRole

    @field_validator("role")
    @classmethod
    def _validate_role(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("Invalid role")
        return value


class UserPage(BaseModel):
    users: list[UserRead]
    pagination: Pagination
