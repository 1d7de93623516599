"""Adoption request workflow.

Every request starts ``pending`` and leaves it exactly once. Leaving
``pending`` is a compare-and-swap UPDATE guarded on the current status, so two
racing decisions on the same request cannot both win. Decisions that touch the
pet take its row lock first and apply the request transition, the pet
transition and any sibling rejections inside a single transaction.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Literal, Sequence

from sqlalchemy import case, exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from sheltersync.core.errors import (
    AuthorizationError,
    NotFoundError,
    ShelterSyncError,
    ValidationError,
)
from sheltersync.models.adoption_request import (
    AdoptionNote,
    AdoptionPriority,
    AdoptionRequest,
    AdoptionRequestStatus,
)
from sheltersync.models.mixins import as_utc, utcnow
from sheltersync.models.pet import Pet, PetStatus
from sheltersync.models.user import User, UserRole
from sheltersync.schemas.adoption import (
    AdopterInfo,
    AdoptionRequestCreate,
    AdoptionStatistics,
    LivingSpace,
)
from sheltersync.security.permissions import can_act_on_request, require_roles
from sheltersync.services import notification_service
from sheltersync.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

ALREADY_PROCESSED = "This request has already been processed"
AUTO_REJECTION_RESPONSE = "Pet has been adopted by another applicant"

_PENDING = AdoptionRequestStatus.PENDING
_PRIORITY_RANK = case(
    (AdoptionRequest.priority == AdoptionPriority.HIGH, 3),
    (AdoptionRequest.priority == AdoptionPriority.MEDIUM, 2),
    else_=1,
)


def compute_priority(adopter_info: AdopterInfo | None) -> AdoptionPriority:
    """Score household suitability: one point per favourable signal."""
    info = adopter_info or AdopterInfo()
    score = 0
    if info.experience and len(info.experience) > 100:
        score += 1
    if info.has_yard:
        score += 1
    if info.living_space in (LivingSpace.HOUSE, LivingSpace.FARM):
        score += 1

    if score >= 2:
        return AdoptionPriority.HIGH
    if score == 1:
        return AdoptionPriority.MEDIUM
    return AdoptionPriority.LOW


def _request_query() -> Select[tuple[AdoptionRequest]]:
    return select(AdoptionRequest).options(
        selectinload(AdoptionRequest.pet),
        selectinload(AdoptionRequest.adopter),
        selectinload(AdoptionRequest.shelter),
        selectinload(AdoptionRequest.notes).selectinload(AdoptionNote.author),
    )


async def _load_request(session: AsyncSession, request_id: uuid.UUID) -> AdoptionRequest:
    stmt = (
        _request_query()
        .where(AdoptionRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    request = (await session.execute(stmt)).scalar_one_or_none()
    if request is None:
        raise NotFoundError("Adoption request not found")
    return request


def _pending_for_pet(pet_id: uuid.UUID) -> Any:
    return exists().where(
        AdoptionRequest.pet_id == pet_id, AdoptionRequest.status == _PENDING
    )


async def _lock_pet(session: AsyncSession, pet_id: uuid.UUID) -> None:
    """Serialize decisions per pet (a no-op on SQLite, which locks the file)."""
    await session.execute(select(Pet.id).where(Pet.id == pet_id).with_for_update())


async def _compare_and_swap(session: AsyncSession, stmt: Any) -> bool:
    result = await session.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount == 1


def _leave_pending(request_id: uuid.UUID, **values: Any) -> Any:
    return (
        update(AdoptionRequest)
        .where(AdoptionRequest.id == request_id, AdoptionRequest.status == _PENDING)
        .values(**values)
    )


async def release_pet_if_idle(session: AsyncSession, pet_id: uuid.UUID) -> bool:
    """Return a reserved pet to the catalog once no pending request remains."""
    return await _compare_and_swap(
        session,
        update(Pet)
        .where(
            Pet.id == pet_id,
            Pet.status == PetStatus.PENDING,
            ~_pending_for_pet(pet_id),
        )
        .values(status=PetStatus.AVAILABLE, version_id=Pet.version_id + 1),
    )


def _ensure_can_respond(actor: User, request: AdoptionRequest) -> None:
    if not can_act_on_request(actor, request).can_respond:
        raise AuthorizationError("Not authorized to respond to this request")
    if not request.can_be_modified():
        raise ValidationError(ALREADY_PROCESSED)


async def create_request(
    session: AsyncSession,
    *,
    adopter: User,
    payload: AdoptionRequestCreate,
    notifier: NotificationDispatcher | None = None,
) -> AdoptionRequest:
    """Apply for a pet and reserve it while the shelter reviews applications."""
    require_roles(adopter, {UserRole.ADOPTER, UserRole.ADMIN})
    pet = await session.get(Pet, payload.pet_id, populate_existing=True)
    if pet is None:
        raise NotFoundError("Pet not found")
    if not pet.accepts_requests():
        raise ValidationError("Pet is not available for adoption")

    duplicate = await session.execute(
        select(
            _pending_for_pet(pet.id).where(AdoptionRequest.adopter_id == adopter.id)
        )
    )
    if duplicate.scalar():
        raise ValidationError("You already have a pending adoption request for this pet")

    request = AdoptionRequest(
        pet_id=pet.id,
        adopter_id=adopter.id,
        shelter_id=pet.shelter_id,
        message=payload.message,
        status=_PENDING,
        priority=compute_priority(payload.adopter_info),
        adopter_info=(
            payload.adopter_info.model_dump(mode="json") if payload.adopter_info else {}
        ),
    )
    session.add(request)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise ValidationError(
            "You already have a pending adoption request for this pet"
        ) from exc

    reserved = await _compare_and_swap(
        session,
        update(Pet)
        .where(
            Pet.id == pet.id,
            Pet.status.in_([PetStatus.AVAILABLE, PetStatus.PENDING]),
        )
        .values(status=PetStatus.PENDING, version_id=Pet.version_id + 1),
    )
    if not reserved:
        # Adopted between the availability check and the insert.
        await session.rollback()
        raise ValidationError("Pet is not available for adoption")
    await session.commit()

    request = await _load_request(session, request.id)
    logger.info(
        "Adopter %s requested pet %s (request %s, priority %s)",
        adopter.id,
        pet.id,
        request.id,
        request.priority.value,
    )
    if notifier is not None:
        subject, body = notification_service.build_new_request_email(
            shelter_name=request.shelter.name,
            pet_name=request.pet.name,
            adopter_name=request.adopter.name,
            message=request.message,
        )
        notifier.dispatch(to=request.shelter.email, subject=subject, body=body)
    return request


async def approve_request(
    session: AsyncSession,
    *,
    request_id: uuid.UUID,
    actor: User,
    response: str | None = None,
    notifier: NotificationDispatcher | None = None,
) -> AdoptionRequest:
    """Approve one application, adopt the pet out and close competing ones."""
    request = await _load_request(session, request_id)
    _ensure_can_respond(actor, request)
    pet_id = request.pet_id
    now = utcnow()

    await _lock_pet(session, pet_id)
    approved = await _compare_and_swap(
        session,
        _leave_pending(
            request.id,
            status=AdoptionRequestStatus.APPROVED,
            shelter_response=response,
            responded_at=now,
            responded_by_id=actor.id,
        ),
    )
    if not approved:
        raise ValidationError(ALREADY_PROCESSED)
    adopted = await _compare_and_swap(
        session,
        update(Pet)
        .where(Pet.id == pet_id, Pet.status != PetStatus.ADOPTED)
        .values(
            status=PetStatus.ADOPTED,
            adopted_by_id=request.adopter_id,
            adopted_at=now,
            version_id=Pet.version_id + 1,
        ),
    )
    if not adopted:
        # Undo the request transition; the pet was adopted out elsewhere.
        await session.rollback()
        raise ValidationError(ALREADY_PROCESSED)

    siblings = await session.execute(
        update(AdoptionRequest)
        .where(
            AdoptionRequest.pet_id == pet_id,
            AdoptionRequest.status == _PENDING,
            AdoptionRequest.id != request.id,
        )
        .values(
            status=AdoptionRequestStatus.REJECTED,
            shelter_response=AUTO_REJECTION_RESPONSE,
            responded_at=now,
            responded_by_id=actor.id,
        )
        .execution_options(synchronize_session=False)
    )
    await session.commit()

    request = await _load_request(session, request_id)
    logger.info(
        "Request %s approved by %s; pet %s adopted, %s competing request(s) rejected",
        request.id,
        actor.id,
        pet_id,
        siblings.rowcount,
    )
    if notifier is not None:
        subject, body = notification_service.build_adoption_approved_email(
            adopter_name=request.adopter.name,
            pet_name=request.pet.name,
            shelter_name=request.shelter.name,
            response=response,
        )
        notifier.dispatch(to=request.adopter.email, subject=subject, body=body)
    return request


async def reject_request(
    session: AsyncSession,
    *,
    request_id: uuid.UUID,
    actor: User,
    response: str | None = None,
    notifier: NotificationDispatcher | None = None,
) -> AdoptionRequest:
    request = await _load_request(session, request_id)
    _ensure_can_respond(actor, request)
    pet_id = request.pet_id

    await _lock_pet(session, pet_id)
    rejected = await _compare_and_swap(
        session,
        _leave_pending(
            request.id,
            status=AdoptionRequestStatus.REJECTED,
            shelter_response=response,
            responded_at=utcnow(),
            responded_by_id=actor.id,
        ),
    )
    if not rejected:
        raise ValidationError(ALREADY_PROCESSED)
    released = await release_pet_if_idle(session, pet_id)
    await session.commit()

    request = await _load_request(session, request_id)
    logger.info(
        "Request %s rejected by %s (pet %s released=%s)",
        request.id,
        actor.id,
        pet_id,
        released,
    )
    if notifier is not None:
        subject, body = notification_service.build_adoption_rejected_email(
            adopter_name=request.adopter.name,
            pet_name=request.pet.name,
            response=response,
        )
        notifier.dispatch(to=request.adopter.email, subject=subject, body=body)
    return request


async def withdraw_request(
    session: AsyncSession, *, request_id: uuid.UUID, actor: User
) -> AdoptionRequest:
    """Let the adopter retract a pending application."""
    request = await _load_request(session, request_id)
    if not can_act_on_request(actor, request).is_adopter:
        raise AuthorizationError("Not authorized to withdraw this request")
    if not request.can_be_modified():
        raise ValidationError("This request cannot be withdrawn")
    pet_id = request.pet_id

    await _lock_pet(session, pet_id)
    withdrawn = await _compare_and_swap(
        session, _leave_pending(request.id, status=AdoptionRequestStatus.WITHDRAWN)
    )
    if not withdrawn:
        raise ValidationError("This request cannot be withdrawn")
    released = await release_pet_if_idle(session, pet_id)
    await session.commit()

    logger.info("Request %s withdrawn (pet %s released=%s)", request_id, pet_id, released)
    return await _load_request(session, request_id)


async def add_note(
    session: AsyncSession,
    *,
    request_id: uuid.UUID,
    author: User,
    content: str,
) -> AdoptionRequest:
    request = await _load_request(session, request_id)
    if not can_act_on_request(author, request).can_view:
        raise AuthorizationError("Not authorized to add notes to this request")
    session.add(AdoptionNote(request_id=request.id, author_id=author.id, content=content))
    await session.commit()
    return await _load_request(session, request_id)


async def get_request(
    session: AsyncSession, *, request_id: uuid.UUID, viewer: User
) -> AdoptionRequest:
    """Return a request visible to its adopter, its shelter or an admin."""
    request = await _load_request(session, request_id)
    if not can_act_on_request(viewer, request).can_view:
        raise AuthorizationError("Not authorized to view this request")
    return request


async def _paginate(
    session: AsyncSession,
    stmt: Select[tuple[AdoptionRequest]],
    *,
    page: int,
    limit: int,
) -> tuple[Sequence[AdoptionRequest], int]:
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int((await session.execute(count_stmt)).scalar_one())
    result = await session.execute(stmt.offset((page - 1) * limit).limit(limit))
    return result.scalars().all(), total


async def list_for_adopter(
    session: AsyncSession,
    *,
    adopter_id: uuid.UUID,
    page: int = 1,
    limit: int = 10,
    status: AdoptionRequestStatus | None = None,
) -> tuple[Sequence[AdoptionRequest], int]:
    stmt = _request_query().where(AdoptionRequest.adopter_id == adopter_id)
    if status is not None:
        stmt = stmt.where(AdoptionRequest.status == status)
    stmt = stmt.order_by(AdoptionRequest.created_at.desc())
    return await _paginate(session, stmt, page=page, limit=limit)


async def list_for_shelter(
    session: AsyncSession,
    *,
    shelter_id: uuid.UUID,
    page: int = 1,
    limit: int = 10,
    status: AdoptionRequestStatus | None = None,
) -> tuple[Sequence[AdoptionRequest], int]:
    """Shelter inbox: highest priority first, newest first within a priority."""
    stmt = _request_query().where(AdoptionRequest.shelter_id == shelter_id)
    if status is not None:
        stmt = stmt.where(AdoptionRequest.status == status)
    stmt = stmt.order_by(_PRIORITY_RANK.desc(), AdoptionRequest.created_at.desc())
    return await _paginate(session, stmt, page=page, limit=limit)


async def get_statistics(
    session: AsyncSession, *, shelter_id: uuid.UUID | None = None
) -> AdoptionStatistics:
    """Counts by status plus mean hours between submission and decision."""
    counts_stmt = select(AdoptionRequest.status, func.count()).group_by(
        AdoptionRequest.status
    )
    timing_stmt = select(AdoptionRequest.created_at, AdoptionRequest.responded_at).where(
        AdoptionRequest.responded_at.is_not(None)
    )
    if shelter_id is not None:
        counts_stmt = counts_stmt.where(AdoptionRequest.shelter_id == shelter_id)
        timing_stmt = timing_stmt.where(AdoptionRequest.shelter_id == shelter_id)

    counts = {status: int(count) for status, count in await session.execute(counts_stmt)}
    durations = [
        (as_utc(responded_at) - as_utc(created_at)).total_seconds() / 3600
        for created_at, responded_at in await session.execute(timing_stmt)
    ]
    avg_hours = round(sum(durations) / len(durations), 1) if durations else None

    return AdoptionStatistics(
        total=sum(counts.values()),
        pending=counts.get(AdoptionRequestStatus.PENDING, 0),
        approved=counts.get(AdoptionRequestStatus.APPROVED, 0),
        rejected=counts.get(AdoptionRequestStatus.REJECTED, 0),
        withdrawn=counts.get(AdoptionRequestStatus.WITHDRAWN, 0),
        avg_response_time_hours=avg_hours,
    )


@dataclass(slots=True)
class BulkOutcome:
    """Per-item outcome of a bulk decision."""

    results: list[AdoptionRequest]
    errors: list[tuple[uuid.UUID, str]]


async def bulk_respond(
    session: AsyncSession,
    *,
    request_ids: Sequence[uuid.UUID],
    action: Literal["approve", "reject"],
    actor: User,
    response: str | None = None,
    notifier: NotificationDispatcher | None = None,
) -> BulkOutcome:
    """Apply one decision to many requests; a failing item never stops the batch."""
    respond = approve_request if action == "approve" else reject_request
    outcome = BulkOutcome(results=[], errors=[])
    for request_id in request_ids:
        try:
            request = await respond(
                session,
                request_id=request_id,
                actor=actor,
                response=response,
                notifier=notifier,
            )
        except ShelterSyncError as exc:
            outcome.errors.append((request_id, exc.message))
            # A rolled back item expires every loaded instance.
            await session.refresh(actor)
            continue
        outcome.results.append(request)
    logger.info(
        "Bulk %s by %s: %s succeeded, %s failed",
        action,
        actor.id,
        len(outcome.results),
        len(outcome.errors),
    )
    return outcome
