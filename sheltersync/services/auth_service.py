"""Authentication service helpers."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.core.config import get_settings
from sheltersync.core.errors import AuthenticationError
from sheltersync.core.security import create_access_token, verify_password
from sheltersync.models.mixins import utcnow
from sheltersync.models.user import User
from sheltersync.services import user_service

logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = "Incorrect email or password"


async def _register_failed_attempt(session: AsyncSession, user: User) -> None:
    settings = get_settings()
    now = utcnow()
    if user.lock_until is not None and not user.is_locked(now):
        # An expired lock starts a fresh window.
        user.login_attempts = 0
        user.lock_until = None
    user.login_attempts += 1
    if user.login_attempts >= settings.max_login_attempts:
        user.lock_until = now + timedelta(minutes=settings.login_lock_minutes)
        logger.warning("Locked user %s after %s failed logins", user.id, user.login_attempts)
    await session.commit()


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User:
    """Validate credentials and return the user, enforcing the lockout policy."""
    user = await user_service.get_user_by_email(session, email=email)
    if user is None:
        raise AuthenticationError(_BAD_CREDENTIALS)
    if not user.is_active:
        raise AuthenticationError("Account has been deactivated")
    if user.is_locked(utcnow()):
        raise AuthenticationError(
            "Account is temporarily locked due to too many failed login attempts"
        )
    if not verify_password(password, user.hashed_password):
        await _register_failed_attempt(session, user)
        raise AuthenticationError(_BAD_CREDENTIALS)

    if user.login_attempts or user.lock_until is not None:
        user.login_attempts = 0
        user.lock_until = None
        await session.commit()
        await session.refresh(user)
    return user


def create_access_token_for_user(user: User) -> str:
    """Generate a JWT for a user."""
    return create_access_token(str(user.id), role=user.role.value)
