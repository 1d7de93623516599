"""ORM models package export."""

from sheltersync.models.adoption_request import (
    AdoptionNote,
    AdoptionPriority,
    AdoptionRequest,
    AdoptionRequestStatus,
)
from sheltersync.models.pet import Pet, PetEnergy, PetSize, PetStatus
from sheltersync.models.user import User, UserRole

__all__ = [
    "AdoptionNote",
    "AdoptionPriority",
    "AdoptionRequest",
    "AdoptionRequestStatus",
    "Pet",
    "PetEnergy",
    "PetSize",
    "PetStatus",
    "User",
    "UserRole",
]
