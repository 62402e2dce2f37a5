"""
PetNest Backend — Status Coordinator Tests
============================================

What:  Tests for derive_pet_status() and the StatusCoordinator's database
       operations.

What we test:
    ✅ Derivation priority: Not Available > Adopted > Pending > Available
    ✅ Lifting the manual override (keep_manual_override=False)
    ✅ Compare-and-swap claim succeeds once, then refuses
    ✅ Release keeps the pet Pending while another application is open
    ✅ Release clears or re-points adopted_by to a remaining approval
    ✅ Re-derivation restores adopted_by from the approved application
"""

import pytest

from petnest.exceptions import InvalidStateError, NotFoundError
from petnest.models.adoption import Adoption
from petnest.models.enums import AdoptionStatus, PetStatus
from petnest.services.status_coordinator import (
    StatusCoordinator,
    derive_pet_status,
    utcnow,
)


class TestDerivePetStatus:

    @pytest.mark.parametrize(
        "current, approved, pending, expected",
        [
            (PetStatus.PENDING, 0, 0, PetStatus.AVAILABLE),
            (PetStatus.PENDING, 0, 2, PetStatus.PENDING),
            (PetStatus.AVAILABLE, 0, 1, PetStatus.PENDING),
            (PetStatus.PENDING, 1, 0, PetStatus.ADOPTED),
            (PetStatus.PENDING, 1, 3, PetStatus.ADOPTED),
            (PetStatus.ADOPTED, 0, 0, PetStatus.AVAILABLE),
        ],
    )
    def test_derivation_rules(self, current, approved, pending, expected):
        assert derive_pet_status(current, approved, pending) is expected

    def test_not_available_is_sticky(self):
        """Rejections and cancellations never lift the admin override."""
        assert derive_pet_status(PetStatus.NOT_AVAILABLE, 0, 0) is PetStatus.NOT_AVAILABLE
        assert derive_pet_status(PetStatus.NOT_AVAILABLE, 1, 0) is PetStatus.NOT_AVAILABLE

    def test_override_can_be_ignored(self):
        assert (
            derive_pet_status(PetStatus.NOT_AVAILABLE, 0, 1, keep_manual_override=False)
            is PetStatus.PENDING
        )
        assert (
            derive_pet_status(PetStatus.NOT_AVAILABLE, 0, 0, keep_manual_override=False)
            is PetStatus.AVAILABLE
        )


class TestStatusCoordinatorDatabase:

    def setup_method(self):
        self.coordinator = StatusCoordinator()

    async def _add_adoption(self, db, pet, user, status=AdoptionStatus.PENDING):
        adoption = Adoption(
            pet_id=pet.id,
            applicant_id=user.id,
            status=status.value,
            applicant_info={"agree_to_terms": True},
            contact_info={},
        )
        db.add(adoption)
        await db.flush()
        return adoption

    @pytest.mark.asyncio
    async def test_claim_moves_available_to_pending(self, db_session, admin, make_pet):
        pet = await make_pet(admin)
        await self.coordinator.claim_for_application(db_session, pet)
        assert pet.status == PetStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_second_claim_is_refused(self, db_session, admin, make_pet):
        pet = await make_pet(admin)
        await self.coordinator.claim_for_application(db_session, pet)

        with pytest.raises(InvalidStateError) as exc_info:
            await self.coordinator.claim_for_application(db_session, pet)
        assert exc_info.value.current_status == PetStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_lock_pet_missing(self, db_session):
        import uuid

        with pytest.raises(NotFoundError):
            await self.coordinator.lock_pet(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_release_with_other_pending_keeps_pending(
        self, db_session, admin, applicant, other_applicant, make_pet
    ):
        pet = await make_pet(admin, status=PetStatus.PENDING)
        first = await self._add_adoption(db_session, pet, applicant)
        await self._add_adoption(db_session, pet, other_applicant)

        first.status = AdoptionStatus.REJECTED.value
        await self.coordinator.apply_release(db_session, pet, first)

        assert pet.status == PetStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_release_last_pending_frees_pet(
        self, db_session, admin, applicant, make_pet
    ):
        pet = await make_pet(admin, status=PetStatus.PENDING)
        only = await self._add_adoption(db_session, pet, applicant)

        only.status = AdoptionStatus.CANCELLED.value
        await self.coordinator.apply_release(db_session, pet, only)

        assert pet.status == PetStatus.AVAILABLE.value
        assert pet.adopted_by_id is None

    @pytest.mark.asyncio
    async def test_release_of_adopter_back_to_pending_clears_adopted_by(
        self, db_session, admin, applicant, other_applicant, make_pet
    ):
        pet = await make_pet(admin, status=PetStatus.ADOPTED)
        approved = await self._add_adoption(
            db_session, pet, applicant, status=AdoptionStatus.APPROVED
        )
        await self._add_adoption(db_session, pet, other_applicant)
        pet.adopted_by_id = applicant.id

        approved.status = AdoptionStatus.REJECTED.value
        await self.coordinator.apply_release(db_session, pet, approved)

        assert pet.status == PetStatus.PENDING.value
        assert pet.adopted_by_id is None

    @pytest.mark.asyncio
    async def test_release_of_adopter_points_at_remaining_approval(
        self, db_session, admin, applicant, other_applicant, make_pet
    ):
        pet = await make_pet(admin, status=PetStatus.ADOPTED)
        released = await self._add_adoption(
            db_session, pet, applicant, status=AdoptionStatus.APPROVED
        )
        remaining = await self._add_adoption(
            db_session, pet, other_applicant, status=AdoptionStatus.APPROVED
        )
        remaining.review_date = utcnow()
        pet.adopted_by_id = applicant.id
        await db_session.flush()

        released.status = AdoptionStatus.CANCELLED.value
        await self.coordinator.apply_release(db_session, pet, released)

        assert pet.status == PetStatus.ADOPTED.value
        assert pet.adopted_by_id == other_applicant.id

    @pytest.mark.asyncio
    async def test_rederive_restores_adopter(
        self, db_session, admin, applicant, make_pet
    ):
        pet = await make_pet(admin, status=PetStatus.NOT_AVAILABLE)
        approved = await self._add_adoption(
            db_session, pet, applicant, status=AdoptionStatus.APPROVED
        )
        approved.review_date = utcnow()
        await db_session.flush()

        result = await self.coordinator.rederive(db_session, pet)

        assert result is PetStatus.ADOPTED
        assert pet.adopted_by_id == applicant.id
