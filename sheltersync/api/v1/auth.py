"""Authentication and self-service account endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.api import deps
from sheltersync.core.config import get_settings
from sheltersync.models.user import User
from sheltersync.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PasswordChange,
    PasswordResetConfirm,
    PasswordResetRequest,
    Token,
)
from sheltersync.schemas.common import MessageResponse
from sheltersync.schemas.user import UserCreate, UserRead, UserUpdate
from sheltersync.services import user_service
from sheltersync.services.auth_service import (
    authenticate_user,
    create_access_token_for_user,
)
from sheltersync.services.notification_service import NotificationDispatcher

router = APIRouter()

_settings = get_settings()

_RATE_WINDOWS = {
    "second": 1,
    "seconds": 1,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
}


def _parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    """Turn '10/minute' into (10, 60)."""
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    return count, _RATE_WINDOWS.get(window_str.strip().lower(), fallback[1])


def _rate_dependency(limit: tuple[int, int]):
    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


_LOGIN_RATE_DEP = _rate_dependency(
    _parse_rate(_settings.rate_limit_login, fallback=(10, 60))
)
_DEFAULT_RATE_DEP = _rate_dependency(
    _parse_rate(_settings.rate_limit_default, fallback=(100, 60))
)


def _login_response(user: User) -> LoginResponse:
    return LoginResponse(
        token=Token(access_token=create_access_token_for_user(user)),
        user=UserRead.model_validate(user),
    )


@router.post(
    "/signup",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an adopter or shelter account",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def signup(
    payload: UserCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    notifier: Annotated[NotificationDispatcher, Depends(deps.get_notifier)],
) -> LoginResponse:
    user = await user_service.create_user(session, payload, notifier=notifier)
    return _login_response(user)


@router.post(
    "/token",
    response_model=Token,
    summary="Obtain access token",
    dependencies=[_LOGIN_RATE_DEP],
)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> Token:
    """OAuth2 password flow used by the interactive docs."""
    user = await authenticate_user(
        session, email=form_data.username, password=form_data.password
    )
    return Token(access_token=create_access_token_for_user(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in with email and password",
    dependencies=[_LOGIN_RATE_DEP],
)
async def login(
    payload: LoginRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> LoginResponse:
    user = await authenticate_user(session, email=payload.email, password=payload.password)
    return _login_response(user)


@router.get("/me", response_model=UserRead, summary="Current user profile")
async def read_current_user(
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> UserRead:
    return UserRead.model_validate(current_user)


@router.patch("/me", response_model=UserRead, summary="Update profile")
async def update_current_user(
    payload: UserUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> UserRead:
    user = await user_service.update_profile(session, current_user, payload)
    return UserRead.model_validate(user)


@router.delete("/me", response_model=MessageResponse, summary="Deactivate account")
async def deactivate_current_user(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> MessageResponse:
    await user_service.deactivate_user(session, current_user)
    return MessageResponse(message="Account deactivated successfully")


@router.patch(
    "/change-password", response_model=LoginResponse, summary="Change password"
)
async def change_password(
    payload: PasswordChange,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> LoginResponse:
    user = await user_service.change_password(
        session,
        current_user,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return _login_response(user)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request password reset",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def forgot_password(
    payload: PasswordResetRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    notifier: Annotated[NotificationDispatcher, Depends(deps.get_notifier)],
) -> MessageResponse:
    await user_service.request_password_reset(
        session, email=payload.email, notifier=notifier
    )
    return MessageResponse(
        message="If an account exists for that email, a reset link has been sent"
    )


@router.patch(
    "/reset-password/{token}",
    response_model=LoginResponse,
    summary="Confirm password reset",
)
async def reset_password(
    token: str,
    payload: PasswordResetConfirm,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> LoginResponse:
    user = await user_service.reset_password(
        session, token=token, new_password=payload.password
    )
    return _login_response(user)


@router.get(
    "/verify-email/{token}", response_model=MessageResponse, summary="Verify email"
)
async def verify_email(
    token: str,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> MessageResponse:
    await user_service.verify_email(session, token=token)
    return MessageResponse(message="Email verified successfully")


@router.post("/refresh-token", response_model=Token, summary="Refresh access token")
async def refresh_token(
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> Token:
    return Token(access_token=create_access_token_for_user(current_user))
