"""Pet listing model."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sheltersync.db.base import Base
from sheltersync.models.mixins import TimestampMixin, enum_values

if TYPE_CHECKING:
    from sheltersync.models.user import User


class PetStatus(str, enum.Enum):
    """Availability of a listed pet."""

    AVAILABLE = "available"
    PENDING = "pending"
    ADOPTED = "adopted"


class PetSize(str, enum.Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra-large"


class PetEnergy(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Pet(TimestampMixin, Base):
    """A pet listed for adoption by a shelter account."""

    __tablename__ = "pets"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    shelter_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    breed: Mapped[str | None] = mapped_column(String(50), index=True)
    age: Mapped[int | None] = mapped_column(Integer)
    health_notes: Mapped[str | None] = mapped_column(String(500))
    image_url: Mapped[str | None] = mapped_column(String(512))
    location: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[PetStatus] = mapped_column(
        Enum(PetStatus, name="petstatus", values_callable=enum_values),
        default=PetStatus.AVAILABLE,
        nullable=False,
        index=True,
    )
    adopted_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT")
    )
    adopted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    vaccinated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    spayed_neutered: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    house_trained: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    good_with_kids: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    good_with_pets: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    size: Mapped[PetSize] = mapped_column(
        Enum(PetSize, name="petsize", values_callable=enum_values),
        default=PetSize.MEDIUM,
        nullable=False,
    )
    energy: Mapped[PetEnergy] = mapped_column(
        Enum(PetEnergy, name="petenergy", values_callable=enum_values),
        default=PetEnergy.MEDIUM,
        nullable=False,
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    shelter: Mapped["User"] = relationship("User", foreign_keys=[shelter_id])
    adopted_by: Mapped["User | None"] = relationship(
        "User", foreign_keys=[adopted_by_id]
    )

    __mapper_args__ = {"version_id_col": version_id}

    def can_be_adopted(self) -> bool:
        return self.status == PetStatus.AVAILABLE

    def accepts_requests(self) -> bool:
        """Pets under review still take applications until one is approved."""
        return self.status in (PetStatus.AVAILABLE, PetStatus.PENDING)

    def mark_as_adopted(self, adopter_id: uuid.UUID, when: datetime) -> None:
        self.status = PetStatus.ADOPTED
        self.adopted_by_id = adopter_id
        self.adopted_at = when


def age_group(age: int | None) -> str:
    """Bucket an age in years into the catalog's display groups."""
    if age is None:
        return "unknown"
    if age < 1:
        return "puppy/kitten"
    if age < 3:
        return "young"
    if age < 7:
        return "adult"
    return "senior"
