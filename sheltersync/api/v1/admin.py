"""Administrator console endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.api import deps
from sheltersync.models.user import User
from sheltersync.schemas.admin import PlatformStats
from sheltersync.schemas.common import MessageResponse, Pagination
from sheltersync.schemas.user import RoleUpdate, UserPage, UserRead
from sheltersync.services import admin_service

router = APIRouter()


@router.get("/users", response_model=UserPage, summary="List active users")
async def list_users(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[User, Depends(deps.get_current_admin)],
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> UserPage:
    users, total = await admin_service.list_users(session, page=page, limit=limit)
    return UserPage(
        users=[UserRead.model_validate(user) for user in users],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.delete(
    "/users/{user_id}", response_model=MessageResponse, summary="Delete a user"
)
async def delete_user(
    user_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[User, Depends(deps.get_current_admin)],
) -> MessageResponse:
    await admin_service.delete_user(session, user_id=user_id)
    return MessageResponse(message="User and associated data deleted successfully")


@router.patch(
    "/users/{user_id}/role", response_model=UserRead, summary="Change a user's role"
)
async def change_user_role(
    user_id: uuid.UUID,
    payload: RoleUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[User, Depends(deps.get_current_admin)],
) -> UserRead:
    user = await admin_service.change_role(session, user_id=user_id, role=payload.role)
    return UserRead.model_validate(user)


@router.get("/stats", response_model=PlatformStats, summary="Platform statistics")
async def platform_stats(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[User, Depends(deps.get_current_admin)],
) -> PlatformStats:
    return await admin_service.get_platform_stats(session)
