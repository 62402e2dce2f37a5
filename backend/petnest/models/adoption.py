"""
PetNest Backend — Adoption SQLAlchemy Model
=============================================

What:  ORM model for the `adoptions` table: one user's application for one pet.
Who:   Written exclusively by AdoptionService through the status coordinator.

Constraints:
    uq_adoptions_active_application: partial unique index on
    (pet_id, applicant_id) WHERE status IN ('Pending', 'Approved').
    The service checks for an active duplicate first and returns a friendly
    error; the index is the backstop when two identical requests race.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petnest.database import Base
from petnest.models.enums import AdoptionStatus
from petnest.models.pet import Pet
from petnest.models.user import User

_ACTIVE_WHERE = text("status IN ('Pending', 'Approved')")


class Adoption(Base):
    __tablename__ = "adoptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    pet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pets.id", ondelete="CASCADE"), nullable=False
    )
    applicant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AdoptionStatus.PENDING.value,
        server_default=text("'Pending'"),
        comment="Pending, Approved, Rejected, Cancelled",
    )

    application_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Set on admin decision only
    review_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # livingSituation, hasOtherPets, experienceWithPets, reasonForAdoption, agreeToTerms
    applicant_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # phone, email, address{street, city, state, zip_code}
    contact_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    pet: Mapped[Pet] = relationship(lazy="selectin")
    applicant: Mapped[User] = relationship(foreign_keys=[applicant_id], lazy="selectin")

    __table_args__ = (
        Index("idx_adoptions_pet_status", "pet_id", "status"),
        Index("idx_adoptions_applicant", "applicant_id"),
        Index(
            "uq_adoptions_active_application",
            "pet_id",
            "applicant_id",
            unique=True,
            postgresql_where=_ACTIVE_WHERE,
            sqlite_where=_ACTIVE_WHERE,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Adoption(id={self.id}, pet_id={self.pet_id}, "
            f"applicant_id={self.applicant_id}, status='{self.status}')>"
        )
