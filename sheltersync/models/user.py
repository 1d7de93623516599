"""User model for adopters, shelters and administrators."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from sheltersync.db.base import Base
from sheltersync.models.mixins import TimestampMixin, as_utc, enum_values


class UserRole(str, enum.Enum):
    """Role enumeration for platform permissions."""

    ADOPTER = "adopter"
    SHELTER = "shelter"
    ADMIN = "admin"


class User(TimestampMixin, Base):
    """Account entity for authentication and authorization."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="userrole", values_callable=enum_values),
        default=UserRole.ADOPTER,
        nullable=False,
        index=True,
    )
    location: Mapped[str | None] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    login_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lock_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_verification_token: Mapped[str | None] = mapped_column(String(128))

    password_reset_token_hash: Mapped[str | None] = mapped_column(String(128))
    password_reset_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    password_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def is_locked(self, now: datetime) -> bool:
        return self.lock_until is not None and as_utc(self.lock_until) > now
