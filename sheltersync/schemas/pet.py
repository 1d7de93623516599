"""Pydantic schemas for pet listings."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from sheltersync.models.pet import PetEnergy, PetSize, PetStatus, age_group
from sheltersync.schemas.common import Pagination, UserSummary


class PetBase(BaseModel):
    """Shared pet fields."""

    name: str = Field(min_length=1, max_length=50)
    breed: str | None = Field(default=None, min_length=2, max_length=50)
    age: int | None = Field(default=None, ge=0, le=30)
    health_notes: str | None = Field(default=None, max_length=500)
    image_url: str | None = Field(default=None, max_length=512)
    location: str | None = Field(default=None, min_length=2, max_length=100)
    vaccinated: bool = False
    spayed_neutered: bool = False
    house_trained: bool = False
    good_with_kids: bool = False
    good_with_pets: bool = False
    size: PetSize = PetSize.MEDIUM
    energy: PetEnergy = PetEnergy.MEDIUM


class PetCreate(PetBase):
    """Payload for listing a pet."""

    featured: bool = False


class PetUpdate(BaseModel):
    """Mutable pet fields; availability is driven by the adoption workflow."""

    name: str | None = Field(default=None, min_length=1, max_length=50)
    breed: str | None = Field(default=None, min_length=2, max_length=50)
    age: int | None = Field(default=None, ge=0, le=30)
    health_notes: str | None = Field(default=None, max_length=500)
    image_url: str | None = Field(default=None, max_length=512)
    location: str | None = Field(default=None, min_length=2, max_length=100)
    vaccinated: bool | None = None
    spayed_neutered: bool | None = None
    house_trained: bool | None = None
    good_with_kids: bool | None = None
    good_with_pets: bool | None = None
    size: PetSize | None = None
    energy: PetEnergy | None = None

    @field_validator(
        "name",
        "vaccinated",
        "spayed_neutered",
        "house_trained",
        "good_with_kids",
        "good_with_pets",
        "size",
        "energy",
    )
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        # Omit a field to keep it; only the descriptive text fields can be cleared.
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class PetRead(PetBase):
    """Serialized pet representation."""

    id: uuid.UUID
    shelter_id: uuid.UUID
    status: PetStatus
    adopted_by_id: uuid.UUID | None = None
    adopted_at: datetime | None = None
    featured: bool
    created_at: datetime
    updated_at: datetime
    shelter: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def age_group(self) -> str:
        return age_group(self.age)


class PetFilters(BaseModel):
    """Catalog filters accepted by the public listing."""

    breed: str | None = None
    age: int | None = Field(default=None, ge=0, le=30)
    location: str | None = None
    size: PetSize | None = None
    energy: PetEnergy | None = None
    vaccinated: bool | None = None
    spayed_neutered: bool | None = None
    house_trained: bool | None = None
    good_with_kids: bool | None = None
    good_with_pets: bool | None = None


class PetPage(BaseModel):
    pets: list[PetRead]
    pagination: Pagination


class MarkAdoptedRequest(BaseModel):
    adopter_id: uuid.UUID


class PetStatistics(BaseModel):
    total: int = 0
    available: int = 0
    pending: int = 0
    adopted: int = 0
    featured: int = 0
