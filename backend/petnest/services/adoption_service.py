"""
PetNest Backend — Adoption Service (Workflow Orchestrator)
============================================================

What:  Filing, deciding, cancelling, and reading adoption applications.
Why:   These are the only operations that mutate two tables (adoptions and
       pets) for one request; keeping them together with the
       StatusCoordinator means the ordering rules are stated once.
Who:   Called by routes/adoptions.py.

Orchestration Flow (every mutating method):
    ┌──────────────┐    ┌──────────────┐    ┌───────────────┐    ┌──────────┐
    │ Authorize    │───▶│ Load + check │───▶│ Write adoption│───▶│ Recompute│
    │ (role/owner) │    │ preconditions│    │   (flush)     │    │ pet      │
    └──────────────┘    └──────────────┘    └───────────────┘    └──────────┘

    All checks run before the first write, so a rejected request leaves
    both tables untouched. The adoption and pet writes share the request
    session and are committed together by get_db_session.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.auth import CallerIdentity
from petnest.config import settings
from petnest.exceptions import (
    DatabaseError,
    DuplicateApplicationError,
    InvalidStateError,
    NotFoundError,
    PetNestError,
    UnauthorizedError,
    ValidationError,
)
from petnest.models.adoption import Adoption
from petnest.models.enums import (
    ACTIVE_ADOPTION_STATUSES,
    DECISION_TARGETS,
    AdoptionStatus,
    PetStatus,
)
from petnest.models.pet import Pet
from petnest.models.user import User
from petnest.schemas.adoption import AdoptionCreate, AdoptionDecision, ContactInfo
from petnest.services.status_coordinator import status_coordinator, utcnow

logger = logging.getLogger(__name__)

ACTIVE_DUPLICATE_MESSAGE = "The applicant already has an active application for this pet"


class AdoptionService:
    """
    Business logic for the adoption workflow.

    Responsibilities:
        - create_application(): file an application (pet → Pending)
        - decide():             admin approves/rejects/cancels (pet recomputed)
        - cancel():             applicant withdraws a Pending application
        - list_for_applicant(), list_all(), get_adoption(): reads

    Error Handling Strategy:
        Precondition failures raise PetNestError subclasses as-is.
        Unexpected SQLAlchemy errors are logged and wrapped in DatabaseError.
    """

    # ── Create ────────────────────────────────────────────────────────────

    async def create_application(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        data: AdoptionCreate,
    ) -> Adoption:
        """
        File a new application and move the pet to Pending.

        Preconditions (in order):
            1. caller is not an admin                  → UnauthorizedError
            2. applicant_info.agree_to_terms is true   → ValidationError
            3. pet exists                              → NotFoundError
            4. pet.status == Available                 → InvalidStateError
            5. no Pending/Approved application by the
               caller for this pet                     → DuplicateApplicationError

        Raises:
            The errors above; DatabaseError on unexpected persistence failure.
        """
        if caller.is_admin:
            raise UnauthorizedError(
                message="Administrators cannot submit adoption applications"
            )

        if not data.applicant_info.agree_to_terms:
            raise ValidationError(
                message="You must agree to the terms and conditions",
                field="applicant_info.agree_to_terms",
            )

        try:
            pet = await db.get(Pet, data.pet)
            if pet is None:
                raise NotFoundError(resource="pet", resource_id=str(data.pet))

            if pet.status != PetStatus.AVAILABLE.value:
                raise InvalidStateError(
                    message="Pet is not available for adoption",
                    current_status=pet.status,
                    context={"pet_id": str(pet.id)},
                )

            await self._ensure_no_active_application(db, pet.id, caller.user_id)

            applicant = await db.get(User, caller.user_id)
            if applicant is None:
                raise NotFoundError(resource="user", resource_id=str(caller.user_id))

            # ── Writes start here ─────────────────────────────────────────
            await status_coordinator.claim_for_application(db, pet)

            contact = data.contact_info or ContactInfo(
                phone=applicant.phone,
                email=applicant.email,
                address=applicant.address,
            )
            adoption = Adoption(
                pet=pet,
                applicant=applicant,
                status=AdoptionStatus.PENDING.value,
                application_date=utcnow(),
                applicant_info=data.applicant_info.model_dump(),
                contact_info=contact.model_dump(),
                notes=data.notes,
            )
            db.add(adoption)
            try:
                await db.flush()
            except IntegrityError:
                # Partial unique index fired: an identical request won the race
                raise DuplicateApplicationError(context={"pet_id": str(pet.id)})

            logger.info(
                "Adoption %s filed by user %s for pet %s",
                adoption.id,
                caller.user_id,
                pet.id,
            )
            return adoption

        except PetNestError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating adoption: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not submit the application. Please try again.",
                context={"error_type": type(e).__name__},
            )

    # ── Decide (admin) ────────────────────────────────────────────────────

    async def decide(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        adoption_id: uuid.UUID,
        decision: AdoptionDecision,
    ) -> Adoption:
        """
        Admin decision: Approved, Rejected, or Cancelled.

        Effect:
            adoption.status = target, review_date = now, reviewed_by = admin,
            notes overwritten when given; then the owning pet is recomputed:
              Approved           → pet Adopted, adopted_by = applicant
              Rejected/Cancelled → pet Available if no other Pending remains

        Policy (settings):
            adoption_allow_redecision=False → only Pending adoptions may be decided
            adoption_allow_redecision=True  → a Rejected/Cancelled adoption may be
                approved again, unless the applicant has since filed a new
                active one for the pet (DuplicateApplicationError)
            adoption_auto_reject_on_approval → see StatusCoordinator.apply_approval
        """
        if not caller.is_admin:
            raise UnauthorizedError(message="Admin access required")

        target = decision.status
        if target not in DECISION_TARGETS:
            raise ValidationError(
                message=(
                    "Invalid decision status. Must be one of: "
                    + ", ".join(t.value for t in DECISION_TARGETS)
                ),
                field="status",
            )

        try:
            adoption = await self._load(db, adoption_id)

            if (
                not settings.adoption_allow_redecision
                and AdoptionStatus(adoption.status).is_terminal
            ):
                raise InvalidStateError(
                    message="Only pending applications can be decided",
                    current_status=adoption.status,
                    context={"adoption_id": str(adoption.id)},
                )

            pet = await status_coordinator.lock_pet(db, adoption.pet_id)
            if target is AdoptionStatus.APPROVED:
                status_coordinator.ensure_can_approve(pet, adoption)
                if adoption.status not in ACTIVE_ADOPTION_STATUSES:
                    # Reviving a closed application: the applicant may have re-applied since
                    await self._ensure_no_active_application(
                        db,
                        pet.id,
                        adoption.applicant_id,
                        exclude_id=adoption.id,
                        message=ACTIVE_DUPLICATE_MESSAGE,
                    )

            # ── Writes start here ─────────────────────────────────────────
            reviewed_at = utcnow()
            previous = adoption.status
            adoption.status = target.value
            adoption.review_date = reviewed_at
            adoption.reviewed_by_id = caller.user_id
            if decision.notes:
                adoption.notes = decision.notes
            try:
                await db.flush()
            except IntegrityError:
                raise DuplicateApplicationError(
                    message=ACTIVE_DUPLICATE_MESSAGE,
                    context={"pet_id": str(pet.id), "adoption_id": str(adoption.id)},
                )

            logger.info(
                "Adoption %s: %s -> %s by admin %s",
                adoption.id,
                previous,
                target.value,
                caller.user_id,
            )

            if target is AdoptionStatus.APPROVED:
                await status_coordinator.apply_approval(
                    db, pet, adoption, reviewer_id=caller.user_id, reviewed_at=reviewed_at
                )
            else:
                await status_coordinator.apply_release(db, pet, adoption)

            return adoption

        except PetNestError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deciding adoption %s: %s", adoption_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the application. Please try again.",
                context={"adoption_id": str(adoption_id)},
            )

    # ── Cancel (applicant) ────────────────────────────────────────────────

    async def cancel(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        adoption_id: uuid.UUID,
    ) -> Adoption:
        """
        Applicant withdraws their own Pending application.

        Preconditions:
            caller is not an admin            → UnauthorizedError
            adoption exists                   → NotFoundError
            caller is the applicant           → UnauthorizedError
            adoption.status == Pending        → InvalidStateError
        """
        if caller.is_admin:
            raise UnauthorizedError(
                message="Administrators cannot cancel adoption applications"
            )

        try:
            adoption = await self._load(db, adoption_id)

            if adoption.applicant_id != caller.user_id:
                raise UnauthorizedError(message="Not authorized")

            if AdoptionStatus(adoption.status).is_terminal:
                raise InvalidStateError(
                    message="Can only cancel pending applications",
                    current_status=adoption.status,
                    context={"adoption_id": str(adoption.id)},
                )

            pet = await status_coordinator.lock_pet(db, adoption.pet_id)

            adoption.status = AdoptionStatus.CANCELLED.value
            await db.flush()
            logger.info("Adoption %s cancelled by applicant %s", adoption.id, caller.user_id)

            await status_coordinator.apply_release(db, pet, adoption)
            return adoption

        except PetNestError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error cancelling adoption %s: %s", adoption_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not cancel the application. Please try again.",
                context={"adoption_id": str(adoption_id)},
            )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_for_applicant(
        self, db: AsyncSession, caller: CallerIdentity
    ) -> List[Adoption]:
        """The caller's own applications, newest first."""
        if caller.is_admin:
            raise UnauthorizedError(
                message="Admins cannot view user applications from this endpoint. "
                "Use the admin listing."
            )
        result = await db.execute(
            select(Adoption)
            .where(Adoption.applicant_id == caller.user_id)
            .order_by(Adoption.application_date.desc())
        )
        return list(result.scalars().all())

    async def list_all(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        status: Optional[AdoptionStatus] = None,
        pet_id: Optional[uuid.UUID] = None,
    ) -> List[Adoption]:
        """Admin dashboard listing with optional status/pet filters."""
        if not caller.is_admin:
            raise UnauthorizedError(message="Admin access required")
        query = select(Adoption)
        if status is not None:
            query = query.where(Adoption.status == status.value)
        if pet_id is not None:
            query = query.where(Adoption.pet_id == pet_id)
        result = await db.execute(query.order_by(Adoption.application_date.desc()))
        return list(result.scalars().all())

    async def get_adoption(
        self, db: AsyncSession, caller: CallerIdentity, adoption_id: uuid.UUID
    ) -> Adoption:
        """Single application, visible to its applicant and to admins."""
        adoption = await self._load(db, adoption_id)
        if adoption.applicant_id != caller.user_id and not caller.is_admin:
            raise UnauthorizedError(message="Not authorized")
        return adoption

    async def _ensure_no_active_application(
        self,
        db: AsyncSession,
        pet_id: uuid.UUID,
        applicant_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
        message: str = "You have already applied for this pet",
    ) -> None:
        """Raise DuplicateApplicationError if the applicant holds a Pending/Approved one."""
        query = select(Adoption.id).where(
            Adoption.pet_id == pet_id,
            Adoption.applicant_id == applicant_id,
            Adoption.status.in_(ACTIVE_ADOPTION_STATUSES),
        )
        if exclude_id is not None:
            query = query.where(Adoption.id != exclude_id)
        existing = await db.execute(query.limit(1))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateApplicationError(message=message, context={"pet_id": str(pet_id)})

    async def _load(self, db: AsyncSession, adoption_id: uuid.UUID) -> Adoption:
        adoption = await db.get(Adoption, adoption_id)
        if adoption is None:
            raise NotFoundError(resource="adoption", resource_id=str(adoption_id))
        return adoption


# ── Singleton Instance ────────────────────────────────────────────────────
adoption_service = AdoptionService()
