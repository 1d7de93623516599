"""Administrative account management and platform statistics."""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.core.errors import ValidationError
from sheltersync.models.adoption_request import (
    AdoptionNote,
    AdoptionRequest,
    AdoptionRequestStatus,
)
from sheltersync.models.pet import Pet
from sheltersync.models.user import User, UserRole
from sheltersync.schemas.admin import PlatformStats, RequestCounts, UserCounts
from sheltersync.services import adoption_service, user_service

logger = logging.getLogger(__name__)


async def list_users(
    session: AsyncSession, *, page: int = 1, limit: int = 10
) -> tuple[Sequence[User], int]:
    """Return one page of active accounts, newest first."""
    base = select(User).where(User.is_active.is_(True))
    count_stmt = select(func.count()).select_from(base.subquery())
    total = int((await session.execute(count_stmt)).scalar_one())
    result = await session.execute(
        base.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return result.scalars().all(), total


async def _require_non_admin(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await user_service.require_user(session, user_id)
    if user.role == UserRole.ADMIN:
        raise ValidationError("Administrator accounts cannot be modified")
    return user


async def change_role(
    session: AsyncSession, *, user_id: uuid.UUID, role: UserRole
) -> User:
    if role == UserRole.ADMIN:
        raise ValidationError("Invalid role")
    user = await _require_non_admin(session, user_id)
    user.role = role
    await session.commit()
    await session.refresh(user)
    logger.info("User %s role changed to %s", user.id, role.value)
    return user


async def delete_user(session: AsyncSession, *, user_id: uuid.UUID) -> None:
    """Hard-delete an account together with everything it owns."""
    user = await _require_non_admin(session, user_id)
    adopted = await session.execute(
        select(func.count()).select_from(Pet).where(Pet.adopted_by_id == user.id)
    )
    if adopted.scalar_one():
        raise ValidationError(
            "Cannot delete a user who is the adopter of record for a pet"
        )

    owned_pets = select(Pet.id).where(Pet.shelter_id == user.id)
    reserved = await session.execute(
        select(AdoptionRequest.pet_id)
        .where(
            AdoptionRequest.adopter_id == user.id,
            AdoptionRequest.status == AdoptionRequestStatus.PENDING,
            AdoptionRequest.pet_id.not_in(owned_pets),
        )
        .distinct()
    )
    reserved_pet_ids = list(reserved.scalars().all())
    doomed_requests = select(AdoptionRequest.id).where(
        or_(
            AdoptionRequest.adopter_id == user.id,
            AdoptionRequest.shelter_id == user.id,
            AdoptionRequest.pet_id.in_(owned_pets),
        )
    )
    await session.execute(
        delete(AdoptionNote).where(
            or_(
                AdoptionNote.author_id == user.id,
                AdoptionNote.request_id.in_(doomed_requests),
            )
        )
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(AdoptionRequest)
        .where(AdoptionRequest.id.in_(doomed_requests))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Pet)
        .where(Pet.shelter_id == user.id)
        .execution_options(synchronize_session=False)
    )
    released = 0
    for pet_id in reserved_pet_ids:
        if await adoption_service.release_pet_if_idle(session, pet_id):
            released += 1
    await session.delete(user)
    await session.commit()
    logger.info(
        "Deleted user %s and associated data; released %d reserved pet(s)",
        user_id,
        released,
    )


async def get_platform_stats(session: AsyncSession) -> PlatformStats:
    users_by_role = {
        role.value: int(count)
        for role, count in await session.execute(
            select(User.role, func.count()).group_by(User.role)
        )
    }
    requests_by_status = {
        status.value: int(count)
        for status, count in await session.execute(
            select(AdoptionRequest.status, func.count()).group_by(
                AdoptionRequest.status
            )
        )
    }
    total_pets = (await session.execute(select(func.count()).select_from(Pet))).scalar_one()
    return PlatformStats(
        users=UserCounts(total=sum(users_by_role.values()), **users_by_role),
        total_pets=int(total_pets),
        adoption_requests=RequestCounts(
            total=sum(requests_by_status.values()), **requests_by_status
        ),
    )
