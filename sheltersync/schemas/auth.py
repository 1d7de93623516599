"""Authentication schemas."""
from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from sheltersync.schemas.user import UserRead, validate_password_strength


class Token(BaseModel):
    """Response body for access tokens."""

    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    """Login payload."""

    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Token plus the public profile of the authenticated user."""

    token: Token
    user: UserRead


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)

    @field_validator("new_password")
    @classmethod
    def _validate_new_password(cls, value: str) -> str:
        return validate_password_strength(value)


class PasswordResetRequest(BaseModel):
    """Request body to initiate a password reset."""

    email: EmailStr


class PasswordResetConfirm(BaseModel):
    """Payload to finalize a password reset."""

    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        return validate_password_strength(value)
