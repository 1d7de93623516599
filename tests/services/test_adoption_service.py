"""Workflow tests for adoption requests."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.core.errors import AuthorizationError, NotFoundError, ValidationError
from sheltersync.models import (
    AdoptionPriority,
    AdoptionRequest,
    AdoptionRequestStatus,
    Pet,
    PetStatus,
    User,
)
from sheltersync.models.mixins import utcnow
from sheltersync.schemas.adoption import AdopterInfo, AdoptionRequestCreate
from sheltersync.services import adoption_service
from sheltersync.services.adoption_service import (
    ALREADY_PROCESSED,
    AUTO_REJECTION_RESPONSE,
)
from sheltersync.services.notification_service import NotificationDispatcher

pytestmark = pytest.mark.asyncio

MESSAGE = "I have a big yard and love animals"


async def _make_pet(session: AsyncSession, shelter: User, **overrides) -> Pet:
    pet = Pet(shelter_id=shelter.id, name=overrides.pop("name", "Biscuit"), **overrides)
    session.add(pet)
    await session.commit()
    await session.refresh(pet)
    return pet


async def _request(
    session: AsyncSession,
    adopter: User,
    pet: Pet,
    *,
    adopter_info: AdopterInfo | None = None,
    notifier: NotificationDispatcher | None = None,
) -> AdoptionRequest:
    return await adoption_service.create_request(
        session,
        adopter=adopter,
        payload=AdoptionRequestCreate(
            pet_id=pet.id, message=MESSAGE, adopter_info=adopter_info
        ),
        notifier=notifier,
    )


async def _reload_pet(session: AsyncSession, pet: Pet) -> Pet:
    result = await session.execute(
        select(Pet).where(Pet.id == pet.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def test_create_request_reserves_pet_and_notifies_shelter(
    db_session: AsyncSession, users: dict[str, User], sink
) -> None:
    pet = await _make_pet(db_session, users["shelter"])

    request = await _request(
        db_session,
        users["adopter"],
        pet,
        notifier=NotificationDispatcher(sink, max_attempts=1),
    )

    assert request.status == AdoptionRequestStatus.PENDING
    assert request.shelter_id == users["shelter"].id
    assert request.priority == AdoptionPriority.MEDIUM
    assert request.responded_at is None
    assert (await _reload_pet(db_session, pet)).status == PetStatus.PENDING
    assert sink.subjects_for(users["shelter"].email) == [
        "New Adoption Request - Biscuit"
    ]


async def test_duplicate_pending_request_is_rejected(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    await _request(db_session, users["adopter"], pet)

    with pytest.raises(ValidationError, match="already have a pending"):
        await _request(db_session, users["adopter"], pet)


async def test_request_for_missing_or_adopted_pet(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    missing = Pet(id=uuid.uuid4(), shelter_id=users["shelter"].id, name="Ghost")
    with pytest.raises(NotFoundError, match="Pet not found"):
        await _request(db_session, users["adopter"], missing)

    adopted = await _make_pet(
        db_session,
        users["shelter"],
        name="Duke",
        status=PetStatus.ADOPTED,
        adopted_by_id=users["second_adopter"].id,
        adopted_at=utcnow(),
    )
    with pytest.raises(ValidationError, match="not available for adoption"):
        await _request(db_session, users["adopter"], adopted)


async def test_shelter_cannot_apply_for_pets(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    with pytest.raises(AuthorizationError):
        await _request(db_session, users["other_shelter"], pet)


async def test_approval_adopts_pet_and_rejects_competing_requests(
    db_session: AsyncSession, users: dict[str, User], sink
) -> None:
    notifier = NotificationDispatcher(sink, max_attempts=1)
    pet = await _make_pet(db_session, users["shelter"])
    first = await _request(db_session, users["adopter"], pet)
    assert (await _reload_pet(db_session, pet)).status == PetStatus.PENDING
    second = await _request(db_session, users["second_adopter"], pet)

    approved = await adoption_service.approve_request(
        db_session,
        request_id=first.id,
        actor=users["shelter"],
        response="Welcome to the family",
        notifier=notifier,
    )

    assert approved.status == AdoptionRequestStatus.APPROVED
    assert approved.shelter_response == "Welcome to the family"
    assert approved.responded_at is not None
    assert approved.responded_by_id == users["shelter"].id

    sibling = await adoption_service.get_request(
        db_session, request_id=second.id, viewer=users["second_adopter"]
    )
    assert sibling.status == AdoptionRequestStatus.REJECTED
    assert sibling.shelter_response == AUTO_REJECTION_RESPONSE
    assert sibling.responded_at is not None
    assert sibling.responded_by_id == users["shelter"].id

    adopted = await _reload_pet(db_session, pet)
    assert adopted.status == PetStatus.ADOPTED
    assert adopted.adopted_by_id == users["adopter"].id
    assert adopted.adopted_at is not None
    assert sink.subjects_for(users["adopter"].email) == [
        "Adoption Request Approved - Biscuit"
    ]


async def test_terminal_requests_accept_no_further_transitions(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)
    await adoption_service.approve_request(
        db_session, request_id=request.id, actor=users["shelter"]
    )

    with pytest.raises(ValidationError, match=ALREADY_PROCESSED):
        await adoption_service.approve_request(
            db_session, request_id=request.id, actor=users["shelter"]
        )
    with pytest.raises(ValidationError, match=ALREADY_PROCESSED):
        await adoption_service.reject_request(
            db_session, request_id=request.id, actor=users["shelter"]
        )
    with pytest.raises(ValidationError, match="cannot be withdrawn"):
        await adoption_service.withdraw_request(
            db_session, request_id=request.id, actor=users["adopter"]
        )


async def test_lost_status_swap_surfaces_as_already_processed(
    db_session: AsyncSession,
    users: dict[str, User],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    first = await _request(db_session, users["adopter"], pet)
    await adoption_service.approve_request(
        db_session, request_id=first.id, actor=users["shelter"]
    )
    # Simulate a racing caller whose pre-check saw the request as pending.
    monkeypatch.setattr(AdoptionRequest, "can_be_modified", lambda self: True)

    with pytest.raises(ValidationError, match=ALREADY_PROCESSED):
        await adoption_service.approve_request(
            db_session, request_id=first.id, actor=users["admin"]
        )
    with pytest.raises(ValidationError, match=ALREADY_PROCESSED):
        await adoption_service.reject_request(
            db_session, request_id=first.id, actor=users["shelter"]
        )

    request = await adoption_service.get_request(
        db_session, request_id=first.id, viewer=users["adopter"]
    )
    assert request.status == AdoptionRequestStatus.APPROVED
    assert request.responded_by_id == users["shelter"].id
    assert (await _reload_pet(db_session, pet)).status == PetStatus.ADOPTED


async def test_rejecting_last_pending_request_releases_pet(
    db_session: AsyncSession, users: dict[str, User], sink
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)

    rejected = await adoption_service.reject_request(
        db_session,
        request_id=request.id,
        actor=users["shelter"],
        response="Not a good fit",
        notifier=NotificationDispatcher(sink, max_attempts=1),
    )

    assert rejected.status == AdoptionRequestStatus.REJECTED
    assert rejected.responded_at is not None
    assert (await _reload_pet(db_session, pet)).status == PetStatus.AVAILABLE
    assert sink.subjects_for(users["adopter"].email) == [
        "Adoption Request Update - Biscuit"
    ]


async def test_rejecting_one_of_several_keeps_pet_reserved(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    first = await _request(db_session, users["adopter"], pet)
    await _request(db_session, users["second_adopter"], pet)

    await adoption_service.reject_request(
        db_session, request_id=first.id, actor=users["shelter"]
    )
    assert (await _reload_pet(db_session, pet)).status == PetStatus.PENDING


async def test_withdrawal_releases_pet_and_is_not_repeatable(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)

    withdrawn = await adoption_service.withdraw_request(
        db_session, request_id=request.id, actor=users["adopter"]
    )
    assert withdrawn.status == AdoptionRequestStatus.WITHDRAWN
    assert withdrawn.responded_at is None
    assert withdrawn.responded_by_id is None
    assert (await _reload_pet(db_session, pet)).status == PetStatus.AVAILABLE

    with pytest.raises(ValidationError, match="cannot be withdrawn"):
        await adoption_service.withdraw_request(
            db_session, request_id=request.id, actor=users["adopter"]
        )


async def test_withdrawn_request_allows_a_fresh_application(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)
    await adoption_service.withdraw_request(
        db_session, request_id=request.id, actor=users["adopter"]
    )

    again = await _request(db_session, users["adopter"], pet)
    assert again.status == AdoptionRequestStatus.PENDING
    assert (await _reload_pet(db_session, pet)).status == PetStatus.PENDING


async def test_only_the_adopter_may_withdraw(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)

    for actor in (users["shelter"], users["second_adopter"]):
        with pytest.raises(AuthorizationError):
            await adoption_service.withdraw_request(
                db_session, request_id=request.id, actor=actor
            )


async def test_non_owning_shelter_cannot_decide_but_admin_can(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)

    with pytest.raises(AuthorizationError):
        await adoption_service.approve_request(
            db_session, request_id=request.id, actor=users["other_shelter"]
        )
    with pytest.raises(AuthorizationError):
        await adoption_service.approve_request(
            db_session, request_id=request.id, actor=users["adopter"]
        )

    approved = await adoption_service.approve_request(
        db_session, request_id=request.id, actor=users["admin"]
    )
    assert approved.status == AdoptionRequestStatus.APPROVED
    assert approved.responded_by_id == users["admin"].id


async def test_unknown_request_is_not_found(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    missing = users["adopter"].id
    with pytest.raises(NotFoundError):
        await adoption_service.approve_request(
            db_session, request_id=missing, actor=users["shelter"]
        )
    with pytest.raises(NotFoundError):
        await adoption_service.get_request(
            db_session, request_id=missing, viewer=users["admin"]
        )


async def test_notes_are_appended_by_parties_only(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)

    await adoption_service.add_note(
        db_session,
        request_id=request.id,
        author=users["adopter"],
        content="Happy to visit this weekend",
    )
    updated = await adoption_service.add_note(
        db_session,
        request_id=request.id,
        author=users["shelter"],
        content="Saturday 10am works",
    )
    assert [note.content for note in updated.notes] == [
        "Happy to visit this weekend",
        "Saturday 10am works",
    ]
    assert updated.notes[1].author.id == users["shelter"].id

    with pytest.raises(AuthorizationError):
        await adoption_service.add_note(
            db_session,
            request_id=request.id,
            author=users["second_adopter"],
            content="Let me in",
        )


async def test_request_visibility(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"])
    request = await _request(db_session, users["adopter"], pet)

    for key in ("adopter", "shelter", "admin"):
        found = await adoption_service.get_request(
            db_session, request_id=request.id, viewer=users[key]
        )
        assert found.id == request.id
    for key in ("second_adopter", "other_shelter"):
        with pytest.raises(AuthorizationError):
            await adoption_service.get_request(
                db_session, request_id=request.id, viewer=users[key]
            )


async def test_shelter_inbox_orders_by_priority_then_recency(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    first_pet = await _make_pet(db_session, users["shelter"], name="Biscuit")
    second_pet = await _make_pet(db_session, users["shelter"], name="Mochi")
    low = await _request(
        db_session,
        users["adopter"],
        first_pet,
        adopter_info=AdopterInfo(living_space="apartment"),
    )
    high = await _request(
        db_session,
        users["second_adopter"],
        first_pet,
        adopter_info=AdopterInfo(living_space="farm", has_yard=True),
    )
    medium = await _request(db_session, users["adopter"], second_pet)

    inbox, total = await adoption_service.list_for_shelter(
        db_session, shelter_id=users["shelter"].id
    )
    assert total == 3
    assert [item.id for item in inbox] == [high.id, medium.id, low.id]
    assert [item.priority for item in inbox] == [
        AdoptionPriority.HIGH,
        AdoptionPriority.MEDIUM,
        AdoptionPriority.LOW,
    ]

    other_inbox, other_total = await adoption_service.list_for_shelter(
        db_session, shelter_id=users["other_shelter"].id
    )
    assert other_total == 0
    assert list(other_inbox) == []


async def test_adopter_listing_is_newest_first_and_filterable(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    first_pet = await _make_pet(db_session, users["shelter"], name="Biscuit")
    second_pet = await _make_pet(db_session, users["shelter"], name="Mochi")
    older = await _request(db_session, users["adopter"], first_pet)
    newer = await _request(db_session, users["adopter"], second_pet)
    await adoption_service.withdraw_request(
        db_session, request_id=older.id, actor=users["adopter"]
    )

    mine, total = await adoption_service.list_for_adopter(
        db_session, adopter_id=users["adopter"].id
    )
    assert total == 2
    assert [item.id for item in mine] == [newer.id, older.id]

    pending, pending_total = await adoption_service.list_for_adopter(
        db_session,
        adopter_id=users["adopter"].id,
        status=AdoptionRequestStatus.PENDING,
    )
    assert pending_total == 1
    assert pending[0].id == newer.id

    page_two, _ = await adoption_service.list_for_adopter(
        db_session, adopter_id=users["adopter"].id, page=2, limit=1
    )
    assert [item.id for item in page_two] == [older.id]


async def test_statistics_count_statuses_and_response_time(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    pet = await _make_pet(db_session, users["shelter"], name="Biscuit")
    other_pet = await _make_pet(db_session, users["other_shelter"], name="Rex")

    empty = await adoption_service.get_statistics(db_session)
    assert empty.total == 0
    assert empty.avg_response_time_hours is None

    first = await _request(db_session, users["adopter"], pet)
    await _request(db_session, users["second_adopter"], pet)
    withdrawn = await _request(db_session, users["adopter"], other_pet)
    await adoption_service.withdraw_request(
        db_session, request_id=withdrawn.id, actor=users["adopter"]
    )
    await adoption_service.approve_request(
        db_session, request_id=first.id, actor=users["shelter"]
    )

    overall = await adoption_service.get_statistics(db_session)
    assert overall.total == 3
    assert overall.approved == 1
    assert overall.rejected == 1
    assert overall.withdrawn == 1
    assert overall.pending == 0
    assert overall.avg_response_time_hours == 0

    scoped = await adoption_service.get_statistics(
        db_session, shelter_id=users["other_shelter"].id
    )
    assert scoped.total == 1
    assert scoped.withdrawn == 1
    assert scoped.avg_response_time_hours is None


async def test_bulk_respond_processes_each_request_independently(
    db_session: AsyncSession, users: dict[str, User]
) -> None:
    mine = await _make_pet(db_session, users["shelter"], name="Biscuit")
    another = await _make_pet(db_session, users["shelter"], name="Mochi")
    foreign = await _make_pet(db_session, users["other_shelter"], name="Rex")
    first = await _request(db_session, users["adopter"], mine)
    second = await _request(db_session, users["adopter"], another)
    not_ours = await _request(db_session, users["adopter"], foreign)
    missing_id = users["admin"].id

    outcome = await adoption_service.bulk_respond(
        db_session,
        request_ids=[first.id, missing_id, not_ours.id, second.id, first.id],
        action="reject",
        actor=users["shelter"],
        response="Applications closed",
    )

    assert [item.id for item in outcome.results] == [first.id, second.id]
    assert all(
        item.status == AdoptionRequestStatus.REJECTED for item in outcome.results
    )
    assert outcome.errors == [
        (missing_id, "Adoption request not found"),
        (not_ours.id, "Not authorized to respond to this request"),
        (first.id, ALREADY_PROCESSED),
    ]
    assert (await _reload_pet(db_session, mine)).status == PetStatus.AVAILABLE
    assert (await _reload_pet(db_session, foreign)).status == PetStatus.PENDING


async def test_notification_failure_does_not_fail_the_request(
    db_session: AsyncSession, users: dict[str, User], failing_sink
) -> None:
    sink = failing_sink
    pet = await _make_pet(db_session, users["shelter"])

    request = await _request(
        db_session,
        users["adopter"],
        pet,
        notifier=NotificationDispatcher(sink, max_attempts=2),
    )

    assert request.status == AdoptionRequestStatus.PENDING
    assert sink.attempts == 2
