"""Ownership and role checks."""

from __future__ import annotations

import uuid

import pytest

from sheltersync.core.errors import AuthorizationError
from sheltersync.models import AdoptionRequest, Pet, User, UserRole
from sheltersync.security.permissions import (
    can_act_on_request,
    can_manage_pet,
    require_roles,
)


def _user(role: UserRole) -> User:
    return User(id=uuid.uuid4(), name=role.value.title(), email="x@example.com", role=role)


def test_require_roles() -> None:
    require_roles(_user(UserRole.SHELTER), {UserRole.SHELTER, UserRole.ADMIN})
    with pytest.raises(AuthorizationError, match="Insufficient permissions"):
        require_roles(_user(UserRole.ADOPTER), {UserRole.SHELTER, UserRole.ADMIN})


def test_request_capabilities_by_party() -> None:
    adopter = _user(UserRole.ADOPTER)
    shelter = _user(UserRole.SHELTER)
    request = AdoptionRequest(
        id=uuid.uuid4(),
        pet_id=uuid.uuid4(),
        adopter_id=adopter.id,
        shelter_id=shelter.id,
        message="Please consider us",
    )

    as_adopter = can_act_on_request(adopter, request)
    assert as_adopter.can_view and not as_adopter.can_respond

    as_shelter = can_act_on_request(shelter, request)
    assert as_shelter.can_view and as_shelter.can_respond
    assert not as_shelter.is_adopter

    as_admin = can_act_on_request(_user(UserRole.ADMIN), request)
    assert as_admin.can_view and as_admin.can_respond
    assert not as_admin.is_adopter

    outsider = can_act_on_request(_user(UserRole.SHELTER), request)
    assert not outsider.can_view
    assert not outsider.can_respond


def test_can_manage_pet() -> None:
    shelter = _user(UserRole.SHELTER)
    pet = Pet(id=uuid.uuid4(), shelter_id=shelter.id, name="Biscuit")

    assert can_manage_pet(shelter, pet)
    assert can_manage_pet(_user(UserRole.ADMIN), pet)
    assert not can_manage_pet(_user(UserRole.SHELTER), pet)
    assert not can_manage_pet(_user(UserRole.ADOPTER), pet)
