"""Adoption request and note models."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sheltersync.db.base import Base
from sheltersync.models.mixins import TimestampMixin, enum_values, utcnow

if TYPE_CHECKING:
    from sheltersync.models.pet import Pet
    from sheltersync.models.user import User


class AdoptionRequestStatus(str, enum.Enum):
    """Lifecycle of a request; every state but pending is terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class AdoptionPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AdoptionRequest(TimestampMixin, Base):
    """An adopter's application for a single pet."""

    __tablename__ = "adoption_requests"

    __table_args__ = (
        Index(
            "ux_adoption_requests_pending_pet_adopter",
            "pet_id",
            "adopter_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
        Index("ix_adoption_requests_shelter_status", "shelter_id", "status"),
        Index("ix_adoption_requests_adopter_status", "adopter_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    adopter_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    shelter_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    status: Mapped[AdoptionRequestStatus] = mapped_column(
        Enum(
            AdoptionRequestStatus,
            name="adoptionrequeststatus",
            values_callable=enum_values,
        ),
        default=AdoptionRequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    shelter_response: Mapped[str | None] = mapped_column(String(1000))
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    responded_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    priority: Mapped[AdoptionPriority] = mapped_column(
        Enum(AdoptionPriority, name="adoptionpriority", values_callable=enum_values),
        default=AdoptionPriority.MEDIUM,
        nullable=False,
    )
    adopter_info: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=dict, nullable=False
    )

    pet: Mapped["Pet"] = relationship("Pet")
    adopter: Mapped["User"] = relationship("User", foreign_keys=[adopter_id])
    shelter: Mapped["User"] = relationship("User", foreign_keys=[shelter_id])
    responded_by: Mapped["User | None"] = relationship(
        "User", foreign_keys=[responded_by_id]
    )
    notes: Mapped[list["AdoptionNote"]] = relationship(
        "AdoptionNote",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="AdoptionNote.created_at",
    )

    def can_be_modified(self) -> bool:
        return self.status == AdoptionRequestStatus.PENDING


class AdoptionNote(Base):
    """Append-only note left on a request by one of its parties."""

    __tablename__ = "adoption_notes"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    request_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("adoption_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    request: Mapped["AdoptionRequest"] = relationship(
        "AdoptionRequest", back_populates="notes"
    )
    author: Mapped["User"] = relationship("User")
