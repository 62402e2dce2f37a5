"""
PetNest Backend — Pet SQLAlchemy Model
========================================

What:  ORM model representing the `pets` table.
Who:   Written by PetService (descriptive fields, manual status) and by the
       status coordinator (derived status, adopted_by).

Status Ownership:
    `status` and `adopted_by_id` are NOT part of the generic update path.
    They move only through:
    - services.status_coordinator  (Available ↔ Pending → Adopted)
    - PetService.set_manual_status (Not Available override)

    Index on status: the public listing filters on status on almost every
    page load ("show me available pets").
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Float,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petnest.database import Base
from petnest.models.enums import AgeUnit, PetStatus
from petnest.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Pet(Base):
    """
    An adoptable listing.

    Lifecycle:
        Available → Pending (first active application)
                  → Adopted (application approved)
                  → Available (last pending application rejected/cancelled)
        Any → Not Available (admin override via set_manual_status)
    """

    __tablename__ = "pets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # ── Descriptive fields ────────────────────────────────────────────────
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    breed: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    age_unit: Mapped[str] = mapped_column(
        String(10), nullable=False, default=AgeUnit.MONTHS.value
    )
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    size: Mapped[str] = mapped_column(String(10), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    special_needs: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    adoption_fee: Mapped[float] = mapped_column(
        Float, nullable=False, default=0
    )

    # Location is flattened so the listing can filter on city
    location_city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    location_state: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    location_country: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    vaccinated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    spayed_neutered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    health_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Workflow fields ───────────────────────────────────────────────────
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PetStatus.AVAILABLE.value,
        server_default=text("'Available'"),
        comment="Available, Pending, Adopted, Not Available",
    )

    posted_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    adopted_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    poster: Mapped[User] = relationship(foreign_keys=[posted_by_id], lazy="selectin")

    __table_args__ = (
        Index("idx_pets_status", "status"),
        Index("idx_pets_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Pet(id={self.id}, name='{self.name}', status='{self.status}')>"
