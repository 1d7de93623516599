"""User directory: accounts, profiles and password lifecycle."""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.core.config import get_settings
from sheltersync.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from sheltersync.core.security import (
    generate_token,
    get_password_hash,
    hash_token,
    verify_password,
)
from sheltersync.models.mixins import as_utc, utcnow
from sheltersync.models.user import User
from sheltersync.schemas.user import UserCreate, UserUpdate
from sheltersync.services import notification_service
from sheltersync.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Return a user by email address."""
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Return a user by ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def require_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def create_user(
    session: AsyncSession,
    payload: UserCreate,
    *,
    notifier: NotificationDispatcher | None = None,
) -> User:
    """Persist a new account and send the email verification link."""
    email = payload.email.lower()
    if await get_user_by_email(session, email) is not None:
        raise ConflictError("User already exists with this email")

    verification_token = generate_token()
    user = User(
        name=payload.name,
        email=email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        location=payload.location,
        email_verification_token=hash_token(verification_token),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("User already exists with this email") from exc
    await session.refresh(user)
    logger.info("Registered %s account %s", user.role.value, user.id)

    if notifier is not None:
        subject, body = notification_service.build_verification_email(
            name=user.name, token=verification_token
        )
        notifier.dispatch(to=user.email, subject=subject, body=body)
    return user


async def update_profile(
    session: AsyncSession, user: User, payload: UserUpdate
) -> User:
    """Update the self-service profile fields on a user."""
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    await session.commit()
    await session.refresh(user)
    return user


async def change_password(
    session: AsyncSession,
    user: User,
    *,
    current_password: str,
    new_password: str,
) -> User:
    if not verify_password(current_password, user.hashed_password):
        raise AuthenticationError("Current password is incorrect")
    user.hashed_password = get_password_hash(new_password)
    user.password_changed_at = utcnow()
    await session.commit()
    await session.refresh(user)
    logger.info("Password changed for user %s", user.id)
    return user


async def request_password_reset(
    session: AsyncSession,
    *,
    email: str,
    notifier: NotificationDispatcher | None = None,
) -> None:
    """Email a reset token when the address belongs to an active account.

    The outcome is never reported back so callers cannot probe for accounts.
    """
    user = await get_user_by_email(session, email)
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown or inactive email")
        return

    settings = get_settings()
    raw_token = generate_token()
    user.password_reset_token_hash = hash_token(raw_token)
    user.password_reset_expires_at = utcnow() + timedelta(
        minutes=settings.password_reset_ttl_minutes
    )
    await session.commit()

    if notifier is not None:
        subject, body = notification_service.build_password_reset_email(
            name=user.name,
            token=raw_token,
            ttl_minutes=settings.password_reset_ttl_minutes,
        )
        notifier.dispatch(to=user.email, subject=subject, body=body)


async def reset_password(
    session: AsyncSession, *, token: str, new_password: str
) -> User:
    result = await session.execute(
        select(User).where(User.password_reset_token_hash == hash_token(token))
    )
    user = result.scalar_one_or_none()
    if (
        user is None
        or user.password_reset_expires_at is None
        or as_utc(user.password_reset_expires_at) < utcnow()
    ):
        raise ValidationError("Token is invalid or has expired")

    user.hashed_password = get_password_hash(new_password)
    user.password_reset_token_hash = None
    user.password_reset_expires_at = None
    user.password_changed_at = utcnow()
    user.login_attempts = 0
    user.lock_until = None
    await session.commit()
    await session.refresh(user)
    logger.info("Password reset completed for user %s", user.id)
    return user


async def verify_email(session: AsyncSession, *, token: str) -> User:
    result = await session.execute(
        select(User).where(User.email_verification_token == hash_token(token))
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise ValidationError("Invalid verification token")
    user.email_verified = True
    user.email_verification_token = None
    await session.commit()
    await session.refresh(user)
    return user


async def deactivate_user(session: AsyncSession, user: User) -> User:
    """Soft-delete an account; its data stays in place."""
    user.is_active = False
    await session.commit()
    await session.refresh(user)
    logger.info("Deactivated user %s", user.id)
    return user
