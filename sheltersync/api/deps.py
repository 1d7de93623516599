"""Common API dependencies."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import BackgroundTasks, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.core.config import get_settings
from sheltersync.core.errors import AuthenticationError
from sheltersync.core.security import decode_access_token
from sheltersync.db.session import get_session
from sheltersync.models.mixins import as_utc
from sheltersync.models.user import User, UserRole
from sheltersync.security.permissions import require_roles
from sheltersync.services import user_service
from sheltersync.services.notification_service import (
    NotificationDispatcher,
    NotificationSink,
    get_default_sink,
)

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}/auth/token", auto_error=False
)

_INVALID_CREDENTIALS = "Could not validate credentials"


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> User:
    """Authenticate request via bearer token."""
    if not token:
        raise AuthenticationError("Not authenticated")
    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        raise AuthenticationError(_INVALID_CREDENTIALS) from exc

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except (ValueError, TypeError) as exc:
        raise AuthenticationError(_INVALID_CREDENTIALS) from exc

    user = await user_service.get_user(session, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError(_INVALID_CREDENTIALS)

    issued_at = payload.get("iat")
    if user.password_changed_at is not None and isinstance(issued_at, int):
        # iat has whole-second precision.
        if issued_at < int(as_utc(user.password_changed_at).timestamp()):
            raise AuthenticationError("Password recently changed, please log in again")
    return user


async def get_current_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Allow only administrators through."""
    require_roles(current_user, {UserRole.ADMIN})
    return current_user


def get_notification_sink() -> NotificationSink:
    """Sink used for outgoing notifications; tests override this."""
    return get_default_sink()


def get_notifier(
    background_tasks: BackgroundTasks,
    sink: Annotated[NotificationSink, Depends(get_notification_sink)],
) -> NotificationDispatcher:
    return NotificationDispatcher(sink, background_tasks)

