"""Pet catalog service helpers."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Sequence

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql import Select

from sheltersync.core.errors import AuthorizationError, NotFoundError, ValidationError
from sheltersync.models.adoption_request import (
    AdoptionNote,
    AdoptionRequest,
    AdoptionRequestStatus,
)
from sheltersync.models.mixins import utcnow
from sheltersync.models.pet import Pet, PetStatus
from sheltersync.models.user import User, UserRole
from sheltersync.schemas.pet import PetCreate, PetFilters, PetStatistics, PetUpdate
from sheltersync.security.permissions import can_manage_pet, require_roles

logger = logging.getLogger(__name__)

_CONCURRENT_EDIT = "Pet was modified by another request; please retry"
_SUBSTRING_FILTERS = ("breed", "location")
_LIKE_ESCAPE = "\\"


def _contains(text: str) -> str:
    """Case-folded LIKE pattern matching ``text`` literally anywhere."""
    escaped = (
        text.lower()
        .replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _base_pet_query() -> Select[tuple[Pet]]:
    return select(Pet).options(selectinload(Pet.shelter))


def _apply_filters(stmt: Select[Any], filters: PetFilters | None) -> Select[Any]:
    if filters is None:
        return stmt
    for field, value in filters.model_dump(exclude_none=True).items():
        column = getattr(Pet, field)
        if field in _SUBSTRING_FILTERS:
            stmt = stmt.where(
                func.lower(column).like(_contains(value), escape=_LIKE_ESCAPE)
            )
        else:
            stmt = stmt.where(column == value)
    return stmt


def _apply_search(stmt: Select[Any], search: str | None) -> Select[Any]:
    if not search:
        return stmt
    pattern = _contains(search)
    searchable = (
        Pet.name,
        func.coalesce(Pet.breed, ""),
        func.coalesce(Pet.location, ""),
        func.coalesce(Pet.health_notes, ""),
    )
    return stmt.where(
        or_(*(func.lower(col).like(pattern, escape=_LIKE_ESCAPE) for col in searchable))
    )


async def list_pets(
    session: AsyncSession,
    *,
    filters: PetFilters | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 12,
) -> tuple[Sequence[Pet], int]:
    """Return one page of available pets, featured listings first."""
    stmt = _apply_search(
        _apply_filters(_base_pet_query(), filters), search
    ).where(Pet.status == PetStatus.AVAILABLE)
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int((await session.execute(count_stmt)).scalar_one())

    stmt = (
        stmt.order_by(Pet.featured.desc(), Pet.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().all(), total


async def list_featured(session: AsyncSession, *, limit: int = 6) -> Sequence[Pet]:
    stmt = (
        _base_pet_query()
        .where(Pet.featured.is_(True), Pet.status == PetStatus.AVAILABLE)
        .order_by(Pet.created_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def list_by_shelter(
    session: AsyncSession,
    *,
    shelter_id: uuid.UUID,
    status: PetStatus | None = None,
    page: int = 1,
    limit: int = 12,
) -> tuple[Sequence[Pet], int]:
    """Return one page of a shelter's listings regardless of availability."""
    stmt = _base_pet_query().where(Pet.shelter_id == shelter_id)
    if status is not None:
        stmt = stmt.where(Pet.status == status)
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = int((await session.execute(count_stmt)).scalar_one())
    result = await session.execute(
        stmt.order_by(Pet.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return result.scalars().all(), total


async def get_pet(session: AsyncSession, pet_id: uuid.UUID) -> Pet:
    """Return a single pet or raise NotFoundError."""
    stmt = (
        _base_pet_query()
        .where(Pet.id == pet_id)
        .execution_options(populate_existing=True)
    )
    pet = (await session.execute(stmt)).scalar_one_or_none()
    if pet is None:
        raise NotFoundError("Pet not found")
    return pet


async def _get_managed_pet(session: AsyncSession, actor: User, pet_id: uuid.UUID) -> Pet:
    pet = await get_pet(session, pet_id)
    if not can_manage_pet(actor, pet):
        raise AuthorizationError("Not authorized to manage this pet")
    return pet


async def _commit_versioned(session: AsyncSession) -> None:
    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        raise ValidationError(_CONCURRENT_EDIT) from exc


async def create_pet(session: AsyncSession, actor: User, payload: PetCreate) -> Pet:
    """List a new pet owned by the acting shelter."""
    require_roles(actor, {UserRole.SHELTER, UserRole.ADMIN})
    pet = Pet(shelter_id=actor.id, status=PetStatus.AVAILABLE, **payload.model_dump())
    session.add(pet)
    await session.commit()
    logger.info("Shelter %s listed pet %s", actor.id, pet.id)
    return await get_pet(session, pet.id)


async def update_pet(
    session: AsyncSession, actor: User, pet_id: uuid.UUID, payload: PetUpdate
) -> Pet:
    pet = await _get_managed_pet(session, actor, pet_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(pet, field, value)
    await _commit_versioned(session)
    return await get_pet(session, pet_id)


async def toggle_featured(session: AsyncSession, actor: User, pet_id: uuid.UUID) -> Pet:
    pet = await _get_managed_pet(session, actor, pet_id)
    pet.featured = not pet.featured
    await _commit_versioned(session)
    logger.info("Pet %s featured=%s", pet_id, pet.featured)
    return await get_pet(session, pet_id)


async def mark_as_adopted(
    session: AsyncSession,
    actor: User,
    pet_id: uuid.UUID,
    *,
    adopter_id: uuid.UUID,
) -> Pet:
    """Record an adoption arranged outside the request workflow."""
    pet = await _get_managed_pet(session, actor, pet_id)
    if not pet.can_be_adopted():
        raise ValidationError("Pet is not available for adoption")
    adopter = await session.get(User, adopter_id)
    if adopter is None:
        raise NotFoundError("Adopter not found")
    if adopter.role != UserRole.ADOPTER:
        raise ValidationError("Pets can only be adopted by adopter accounts")

    pet.mark_as_adopted(adopter.id, utcnow())
    await _commit_versioned(session)
    logger.info("Pet %s marked adopted by %s", pet_id, adopter.id)
    return await get_pet(session, pet_id)


async def delete_pet(session: AsyncSession, actor: User, pet_id: uuid.UUID) -> None:
    """Remove a listing together with its resolved requests and their notes."""
    await _get_managed_pet(session, actor, pet_id)
    pending_exists = exists().where(
        AdoptionRequest.pet_id == pet_id,
        AdoptionRequest.status == AdoptionRequestStatus.PENDING,
    )
    resolved_ids = select(AdoptionRequest.id).where(
        AdoptionRequest.pet_id == pet_id,
        AdoptionRequest.status != AdoptionRequestStatus.PENDING,
    )
    await session.execute(
        delete(AdoptionNote).where(AdoptionNote.request_id.in_(resolved_ids))
    )
    await session.execute(
        delete(AdoptionRequest).where(
            AdoptionRequest.pet_id == pet_id,
            AdoptionRequest.status != AdoptionRequestStatus.PENDING,
        )
    )
    result = await session.execute(
        delete(Pet)
        .where(Pet.id == pet_id, ~pending_exists)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise ValidationError("Cannot delete pet with pending adoption requests")
    await session.commit()
    session.expunge_all()
    logger.info("Deleted pet %s", pet_id)


async def get_pet_statistics(
    session: AsyncSession, *, shelter_id: uuid.UUID | None = None
) -> PetStatistics:
    status_stmt = select(Pet.status, func.count()).group_by(Pet.status)
    featured_stmt = select(func.count()).select_from(Pet).where(Pet.featured.is_(True))
    if shelter_id is not None:
        status_stmt = status_stmt.where(Pet.shelter_id == shelter_id)
        featured_stmt = featured_stmt.where(Pet.shelter_id == shelter_id)

    counts = {status: int(count) for status, count in await session.execute(status_stmt)}
    featured = int((await session.execute(featured_stmt)).scalar_one())
    return PetStatistics(
        total=sum(counts.values()),
        available=counts.get(PetStatus.AVAILABLE, 0),
        pending=counts.get(PetStatus.PENDING, 0),
        adopted=counts.get(PetStatus.ADOPTED, 0),
        featured=featured,
    )
