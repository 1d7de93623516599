"""Pet catalog API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.api import deps
from sheltersync.models.pet import PetStatus
from sheltersync.models.user import User, UserRole
from sheltersync.schemas.common import MessageResponse, Pagination
from sheltersync.schemas.pet import (
    MarkAdoptedRequest,
    PetCreate,
    PetFilters,
    PetPage,
    PetRead,
    PetStatistics,
    PetUpdate,
)
from sheltersync.security.permissions import require_roles
from sheltersync.services import pet_service

router = APIRouter()


@router.get("", response_model=PetPage, summary="Browse available pets")
async def list_pets(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    filters: Annotated[PetFilters, Query()],
    search: str | None = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
) -> PetPage:
    pets, total = await pet_service.list_pets(
        session, filters=filters, search=search, page=page, limit=limit
    )
    return PetPage(
        pets=[PetRead.model_validate(pet) for pet in pets],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/featured", response_model=list[PetRead], summary="Featured pets")
async def list_featured_pets(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    limit: int = Query(default=6, ge=1, le=50),
) -> list[PetRead]:
    pets = await pet_service.list_featured(session, limit=limit)
    return [PetRead.model_validate(pet) for pet in pets]


@router.get("/statistics", response_model=PetStatistics, summary="Pet counts")
async def pet_statistics(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    shelter_id: uuid.UUID | None = Query(default=None),
) -> PetStatistics:
    """Shelters see their own listings; admins may scope to any shelter."""
    require_roles(current_user, {UserRole.SHELTER, UserRole.ADMIN})
    if current_user.role == UserRole.SHELTER:
        shelter_id = current_user.id
    return await pet_service.get_pet_statistics(session, shelter_id=shelter_id)


@router.get(
    "/shelter/{shelter_id}", response_model=PetPage, summary="Pets of a shelter"
)
async def list_shelter_pets(
    shelter_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    pet_status: PetStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
) -> PetPage:
    pets, total = await pet_service.list_by_shelter(
        session, shelter_id=shelter_id, status=pet_status, page=page, limit=limit
    )
    return PetPage(
        pets=[PetRead.model_validate(pet) for pet in pets],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/{pet_id}", response_model=PetRead, summary="Get pet")
async def get_pet(
    pet_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> PetRead:
    pet = await pet_service.get_pet(session, pet_id)
    return PetRead.model_validate(pet)


@router.post(
    "",
    response_model=PetRead,
    status_code=status.HTTP_201_CREATED,
    summary="List a pet for adoption",
)
async def create_pet(
    payload: PetCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> PetRead:
    pet = await pet_service.create_pet(session, current_user, payload)
    return PetRead.model_validate(pet)


@router.put("/{pet_id}", response_model=PetRead, summary="Update pet")
async def update_pet(
    pet_id: uuid.UUID,
    payload: PetUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> PetRead:
    pet = await pet_service.update_pet(session, current_user, pet_id, payload)
    return PetRead.model_validate(pet)


@router.patch(
    "/{pet_id}/featured", response_model=PetRead, summary="Toggle featured flag"
)
async def toggle_featured(
    pet_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> PetRead:
    pet = await pet_service.toggle_featured(session, current_user, pet_id)
    return PetRead.model_validate(pet)


@router.patch("/{pet_id}/adopt", response_model=PetRead, summary="Mark pet adopted")
async def mark_pet_adopted(
    pet_id: uuid.UUID,
    payload: MarkAdoptedRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> PetRead:
    pet = await pet_service.mark_as_adopted(
        session, current_user, pet_id, adopter_id=payload.adopter_id
    )
    return PetRead.model_validate(pet)


@router.delete("/{pet_id}", response_model=MessageResponse, summary="Delete pet")
async def delete_pet(
    pet_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> MessageResponse:
    await pet_service.delete_pet(session, current_user, pet_id)
    return MessageResponse(message="Pet deleted successfully")
