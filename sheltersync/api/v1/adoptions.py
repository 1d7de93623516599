"""Adoption request endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.api import deps
from sheltersync.core.errors import ValidationError
from sheltersync.models.adoption_request import AdoptionRequestStatus
from sheltersync.models.user import User, UserRole
from sheltersync.schemas.adoption import (
    AdoptionDecision,
    AdoptionNoteCreate,
    AdoptionRequestCreate,
    AdoptionRequestPage,
    AdoptionRequestRead,
    AdoptionStatistics,
    BulkRespondError,
    BulkRespondRequest,
    BulkRespondResult,
)
from sheltersync.schemas.common import Pagination
from sheltersync.security.permissions import require_roles
from sheltersync.services import adoption_service
from sheltersync.services.notification_service import NotificationDispatcher

router = APIRouter()

_DECISION_ROLES = {UserRole.SHELTER, UserRole.ADMIN}


def _page(requests, *, page: int, limit: int, total: int) -> AdoptionRequestPage:
    return AdoptionRequestPage(
        requests=[AdoptionRequestRead.model_validate(item) for item in requests],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.post(
    "",
    response_model=AdoptionRequestRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request to adopt a pet",
)
async def create_adoption_request(
    payload: AdoptionRequestCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    notifier: Annotated[NotificationDispatcher, Depends(deps.get_notifier)],
) -> AdoptionRequestRead:
    request = await adoption_service.create_request(
        session, adopter=current_user, payload=payload, notifier=notifier
    )
    return AdoptionRequestRead.model_validate(request)


@router.get("/mine", response_model=AdoptionRequestPage, summary="My requests")
async def list_my_requests(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    request_status: AdoptionRequestStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> AdoptionRequestPage:
    requests, total = await adoption_service.list_for_adopter(
        session,
        adopter_id=current_user.id,
        page=page,
        limit=limit,
        status=request_status,
    )
    return _page(requests, page=page, limit=limit, total=total)


@router.get(
    "/shelter", response_model=AdoptionRequestPage, summary="Shelter request inbox"
)
async def list_shelter_requests(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    shelter_id: uuid.UUID | None = Query(default=None),
    request_status: AdoptionRequestStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> AdoptionRequestPage:
    """Shelters see their own inbox; admins pick a shelter by id."""
    require_roles(current_user, _DECISION_ROLES)
    if current_user.role == UserRole.SHELTER:
        shelter_id = current_user.id
    elif shelter_id is None:
        raise ValidationError("shelter_id is required")
    requests, total = await adoption_service.list_for_shelter(
        session,
        shelter_id=shelter_id,
        page=page,
        limit=limit,
        status=request_status,
    )
    return _page(requests, page=page, limit=limit, total=total)


@router.get(
    "/statistics", response_model=AdoptionStatistics, summary="Request statistics"
)
async def adoption_statistics(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    shelter_id: uuid.UUID | None = Query(default=None),
) -> AdoptionStatistics:
    require_roles(current_user, _DECISION_ROLES)
    if current_user.role == UserRole.SHELTER:
        shelter_id = current_user.id
    return await adoption_service.get_statistics(session, shelter_id=shelter_id)


@router.post(
    "/bulk-respond",
    response_model=BulkRespondResult,
    summary="Approve or reject many requests",
)
async def bulk_respond(
    payload: BulkRespondRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    notifier: Annotated[NotificationDispatcher, Depends(deps.get_notifier)],
) -> BulkRespondResult:
    require_roles(current_user, _DECISION_ROLES)
    outcome = await adoption_service.bulk_respond(
        session,
        request_ids=payload.request_ids,
        action=payload.action,
        actor=current_user,
        response=payload.response,
        notifier=notifier,
    )
    return BulkRespondResult(
        results=[AdoptionRequestRead.model_validate(item) for item in outcome.results],
        errors=[
            BulkRespondError(request_id=request_id, detail=detail)
            for request_id, detail in outcome.errors
        ],
    )


@router.get(
    "/{request_id}", response_model=AdoptionRequestRead, summary="Get request"
)
async def get_adoption_request(
    request_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> AdoptionRequestRead:
    request = await adoption_service.get_request(
        session, request_id=request_id, viewer=current_user
    )
    return AdoptionRequestRead.model_validate(request)


@router.patch(
    "/{request_id}/approve",
    response_model=AdoptionRequestRead,
    summary="Approve request",
)
async def approve_adoption_request(
    request_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    notifier: Annotated[NotificationDispatcher, Depends(deps.get_notifier)],
    payload: AdoptionDecision | None = None,
) -> AdoptionRequestRead:
    request = await adoption_service.approve_request(
        session,
        request_id=request_id,
        actor=current_user,
        response=payload.response if payload else None,
        notifier=notifier,
    )
    return AdoptionRequestRead.model_validate(request)


@router.patch(
    "/{request_id}/reject",
    response_model=AdoptionRequestRead,
    summary="Reject request",
)
async def reject_adoption_request(
    request_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    notifier: Annotated[NotificationDispatcher, Depends(deps.get_notifier)],
    payload: AdoptionDecision | None = None,
) -> AdoptionRequestRead:
    request = await adoption_service.reject_request(
        session,
        request_id=request_id,
        actor=current_user,
        response=payload.response if payload else None,
        notifier=notifier,
    )
    return AdoptionRequestRead.model_validate(request)


@router.patch(
    "/{request_id}/withdraw",
    response_model=AdoptionRequestRead,
    summary="Withdraw request",
)
async def withdraw_adoption_request(
    request_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> AdoptionRequestRead:
    request = await adoption_service.withdraw_request(
        session, request_id=request_id, actor=current_user
    )
    return AdoptionRequestRead.model_validate(request)


@router.post(
    "/{request_id}/notes",
    response_model=AdoptionRequestRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a note to a request",
)
async def add_adoption_note(
    request_id: uuid.UUID,
    payload: AdoptionNoteCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> AdoptionRequestRead:
    request = await adoption_service.add_note(
        session, request_id=request_id, author=current_user, content=payload.content
    )
    return AdoptionRequestRead.model_validate(request)
