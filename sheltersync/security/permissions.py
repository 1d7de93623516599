"""Role and ownership helpers for explicit authorization checks."""

from __future__ import annotations

from dataclasses import dataclass

from sheltersync.core.errors import AuthorizationError
from sheltersync.models.adoption_request import AdoptionRequest
from sheltersync.models.pet import Pet
from sheltersync.models.user import User, UserRole


def require_roles(user: User, allowed: set[UserRole]) -> None:
    """Raise AuthorizationError if a user is not a member of the allowed role set."""

    if user.role not in allowed:
        raise AuthorizationError("Insufficient permissions")


@dataclass(frozen=True, slots=True)
class RequestCapabilities:
    """How a user relates to an adoption request."""

    is_adopter: bool
    is_shelter: bool
    is_admin: bool

    @property
    def can_view(self) -> bool:
        return self.is_adopter or self.is_shelter or self.is_admin

    @property
    def can_respond(self) -> bool:
        return self.is_shelter or self.is_admin


def can_act_on_request(user: User, request: AdoptionRequest) -> RequestCapabilities:
    return RequestCapabilities(
        is_adopter=request.adopter_id == user.id,
        is_shelter=request.shelter_id == user.id,
        is_admin=user.is_admin,
    )


def can_manage_pet(user: User, pet: Pet) -> bool:
    """Owning shelter or an admin may change a listing."""
    return user.is_admin or pet.shelter_id == user.id


__all__ = [
    "RequestCapabilities",
    "can_act_on_request",
    "can_manage_pet",
    "require_roles",
]
