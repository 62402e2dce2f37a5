"""
PetNest Backend — Pet Status Coordinator
==========================================

What:  The rule set that keeps Pet.status consistent with the pet's
       Adoption records.
Why:   Pet.status is an aggregate of a foreign collection (how many
       applications are Pending/Approved). Every place that changes an
       Adoption's status must recompute the pet the same way, so the rules
       live here and nowhere else.
How:   - derive_pet_status(): pure rule, no I/O, unit-tested directly
       - StatusCoordinator: applies the rule against the database inside
         the caller's session (same transaction as the adoption write)
Who:   Called by AdoptionService (create/decide/cancel) and by
       PetService.set_manual_status.

Pet state machine:
    Available ──apply──▶ Pending ──approve──▶ Adopted
        ▲                   │
        └──reject/cancel────┘  (only when no other Pending application remains)

    Not Available is an admin override. It blocks new applications and is
    left untouched by rejections and cancellations; only an approval or an
    explicit set_manual_status("Available") moves the pet off it.

Concurrency:
    - claim_for_application() is a compare-and-swap:
        UPDATE pets SET status='Pending' WHERE id=:id AND status='Available'
      Zero rows updated means another request took the pet first.
    - lock_pet() issues SELECT ... FOR UPDATE so two admins deciding on the
      same pet serialize on PostgreSQL (SQLite ignores the hint).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.config import settings
from petnest.exceptions import InvalidStateError, NotFoundError
from petnest.models.adoption import Adoption
from petnest.models.enums import AdoptionStatus, PetStatus
from petnest.models.pet import Pet

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_pet_status(
    current: PetStatus,
    approved_count: int,
    pending_count: int,
    keep_manual_override: bool = True,
) -> PetStatus:
    """
    Compute a pet's status from the counts of its Approved and Pending
    adoptions.

    Rules, in priority order:
        1. Not Available stays Not Available (unless keep_manual_override=False)
        2. Any Approved adoption      → Adopted
        3. Any Pending adoption       → current status if it already reflects
                                        an open application, else Pending
        4. Otherwise                  → Available
    """
    if keep_manual_override and current is PetStatus.NOT_AVAILABLE:
        return PetStatus.NOT_AVAILABLE
    if approved_count > 0:
        return PetStatus.ADOPTED
    if pending_count > 0:
        if current is PetStatus.PENDING:
            return current
        return PetStatus.PENDING
    return PetStatus.AVAILABLE


class StatusCoordinator:
    """
    Applies derive_pet_status() to the database.

    Every method flushes but never commits; the request's session
    (get_db_session) commits the adoption and pet writes together.
    """

    async def lock_pet(self, db: AsyncSession, pet_id: uuid.UUID) -> Pet:
        """Load the pet row FOR UPDATE, refreshing any copy already in the session."""
        result = await db.execute(
            select(Pet)
            .where(Pet.id == pet_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        pet = result.scalar_one_or_none()
        if pet is None:
            raise NotFoundError(resource="pet", resource_id=str(pet_id))
        return pet

    async def count_adoptions(
        self,
        db: AsyncSession,
        pet_id: uuid.UUID,
        status: AdoptionStatus,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> int:
        query = select(func.count(Adoption.id)).where(
            Adoption.pet_id == pet_id,
            Adoption.status == status.value,
        )
        if exclude_id is not None:
            query = query.where(Adoption.id != exclude_id)
        result = await db.execute(query)
        return result.scalar() or 0

    async def claim_for_application(self, db: AsyncSession, pet: Pet) -> None:
        """
        Flip an Available pet to Pending, or fail if someone got there first.

        Raises:
            InvalidStateError: the pet was no longer Available
        """
        result = await db.execute(
            update(Pet)
            .where(Pet.id == pet.id, Pet.status == PetStatus.AVAILABLE.value)
            .values(status=PetStatus.PENDING.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.refresh(pet, attribute_names=["status"])
            raise InvalidStateError(
                message="Pet is not available for adoption",
                current_status=pet.status,
                context={"pet_id": str(pet.id)},
            )
        pet.status = PetStatus.PENDING.value
        logger.info("Pet %s: Available -> Pending (new application)", pet.id)

    def ensure_can_approve(self, pet: Pet, adoption: Adoption) -> None:
        """
        Refuse a second approval for an already adopted pet.

        Called before any write so a refused approval leaves no trace.
        """
        if (
            pet.status == PetStatus.ADOPTED.value
            and pet.adopted_by_id is not None
            and pet.adopted_by_id != adoption.applicant_id
        ):
            raise InvalidStateError(
                message="Pet has already been adopted by another applicant",
                current_status=pet.status,
                context={"pet_id": str(pet.id)},
            )

    async def apply_approval(
        self,
        db: AsyncSession,
        pet: Pet,
        adoption: Adoption,
        reviewer_id: uuid.UUID,
        reviewed_at: datetime,
    ) -> List[Adoption]:
        """
        Mark the pet Adopted by the adoption's applicant.

        Returns the other applications that were auto-rejected (empty unless
        ADOPTION_AUTO_REJECT_ON_APPROVAL is enabled).
        """
        previous = pet.status
        pet.status = PetStatus.ADOPTED.value
        pet.adopted_by_id = adoption.applicant_id
        logger.info(
            "Pet %s: %s -> Adopted (adoption %s approved)", pet.id, previous, adoption.id
        )

        rejected: List[Adoption] = []
        if settings.adoption_auto_reject_on_approval:
            result = await db.execute(
                select(Adoption).where(
                    Adoption.pet_id == pet.id,
                    Adoption.status == AdoptionStatus.PENDING.value,
                    Adoption.id != adoption.id,
                )
            )
            for other in result.scalars().all():
                other.status = AdoptionStatus.REJECTED.value
                other.review_date = reviewed_at
                other.reviewed_by_id = reviewer_id
                rejected.append(other)
            if rejected:
                logger.info(
                    "Pet %s: auto-rejected %d other pending application(s)",
                    pet.id,
                    len(rejected),
                )

        await db.flush()
        return rejected

    async def apply_release(self, db: AsyncSession, pet: Pet, adoption: Adoption) -> None:
        """
        Recompute the pet after `adoption` was rejected or cancelled.

        Counts the pet's OTHER applications; if none is still Pending the
        pet returns to Available. adopted_by only survives while another
        Approved application remains, and then names that applicant.
        """
        pending = await self.count_adoptions(
            db, pet.id, AdoptionStatus.PENDING, exclude_id=adoption.id
        )
        approved = await self.count_adoptions(
            db, pet.id, AdoptionStatus.APPROVED, exclude_id=adoption.id
        )

        previous = PetStatus(pet.status)
        new_status = derive_pet_status(previous, approved, pending)

        if approved == 0:
            pet.adopted_by_id = None
        elif pet.adopted_by_id in (None, adoption.applicant_id):
            pet.adopted_by_id = await self.latest_approved_applicant(
                db, pet.id, exclude_id=adoption.id
            )
        if new_status is not previous:
            pet.status = new_status.value
            logger.info(
                "Pet %s: %s -> %s (adoption %s released, %d pending left)",
                pet.id,
                previous.value,
                new_status.value,
                adoption.id,
                pending,
            )
        await db.flush()

    async def rederive(self, db: AsyncSession, pet: Pet) -> PetStatus:
        """
        Recompute the pet from scratch, ignoring any manual override.

        Used when an admin lifts "Not Available".
        """
        pending = await self.count_adoptions(db, pet.id, AdoptionStatus.PENDING)
        approved = await self.count_adoptions(db, pet.id, AdoptionStatus.APPROVED)
        new_status = derive_pet_status(
            PetStatus(pet.status), approved, pending, keep_manual_override=False
        )
        if new_status is not PetStatus.ADOPTED:
            pet.adopted_by_id = None
        elif pet.adopted_by_id is None:
            pet.adopted_by_id = await self.latest_approved_applicant(db, pet.id)
        pet.status = new_status.value
        await db.flush()
        return new_status

    async def latest_approved_applicant(
        self,
        db: AsyncSession,
        pet_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[uuid.UUID]:
        """Applicant of the most recently reviewed Approved application, if any."""
        query = select(Adoption.applicant_id).where(
            Adoption.pet_id == pet_id,
            Adoption.status == AdoptionStatus.APPROVED.value,
        )
        if exclude_id is not None:
            query = query.where(Adoption.id != exclude_id)
        result = await db.execute(query.order_by(Adoption.review_date.desc()).limit(1))
        return result.scalar_one_or_none()


# ── Singleton Instance ────────────────────────────────────────────────────
status_coordinator = StatusCoordinator()
