"""Schemas for adoption requests, notes and statistics."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from sheltersync.models.adoption_request import (
    AdoptionPriority,
    AdoptionRequestStatus,
)
from sheltersync.models.mixins import as_utc, utcnow
from sheltersync.models.pet import PetStatus
from sheltersync.schemas.common import Pagination, UserSummary


class LivingSpace(str, enum.Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    FARM = "farm"
    OTHER = "other"


class AdopterInfo(BaseModel):
    """Household details an adopter volunteers with a request."""

    experience: str | None = Field(default=None, max_length=500)
    living_space: LivingSpace = LivingSpace.HOUSE
    has_yard: bool = False
    has_other_pets: bool = False
    has_children: bool = False
    work_schedule: str | None = Field(default=None, max_length=200)


class AdoptionRequestCreate(BaseModel):
    pet_id: uuid.UUID
    message: str = Field(min_length=10, max_length=1000)
    adopter_info: AdopterInfo | None = None


class AdoptionDecision(BaseModel):
    """Optional shelter response sent with an approval or rejection."""

    response: str | None = Field(default=None, max_length=1000)


class AdoptionNoteCreate(BaseModel):
    content: str = Field(min_length=1, max_length=500)


class AdoptionNoteRead(BaseModel):
    id: uuid.UUID
    content: str
    author: UserSummary
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PetSummary(BaseModel):
    """Slice of a pet embedded in request responses."""

    id: uuid.UUID
    name: str
    breed: str | None = None
    age: int | None = None
    image_url: str | None = None
    status: PetStatus

    model_config = ConfigDict(from_attributes=True)


class AdoptionRequestRead(BaseModel):
    """Serialized adoption request with party summaries and notes."""

    id: uuid.UUID
    pet: PetSummary
    adopter: UserSummary
    shelter: UserSummary
    message: str
    status: AdoptionRequestStatus
    priority: AdoptionPriority
    shelter_response: str | None = None
    responded_at: datetime | None = None
    responded_by_id: uuid.UUID | None = None
    adopter_info: AdopterInfo | None = None
    notes: list[AdoptionNoteRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def age_in_days(self) -> int:
        return (utcnow() - as_utc(self.created_at)).days

    @computed_field  # type: ignore[prop-decorator]
    @property
    def response_time_hours(self) -> int | None:
        if self.responded_at is None:
            return None
        elapsed = as_utc(self.responded_at) - as_utc(self.created_at)
        return int(elapsed.total_seconds() // 3600)


class AdoptionRequestPage(BaseModel):
    requests: list[AdoptionRequestRead]
    pagination: Pagination


class AdoptionStatistics(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    withdrawn: int = 0
    avg_response_time_hours: float | None = None


class BulkRespondRequest(BaseModel):
    request_ids: list[uuid.UUID] = Field(min_length=1)
    action: Literal["approve", "reject"]
    response: str | None = Field(default=None, max_length=1000)


class BulkRespondError(BaseModel):
    request_id: uuid.UUID
    detail: str


class BulkRespondResult(BaseModel):
    results: list[AdoptionRequestRead] = Field(default_factory=list)
    errors: list[BulkRespondError] = Field(default_factory=list)
