"""
PetNest Backend — Pet Service
===============================

What:  Listing, retrieval, and admin maintenance of pets.
Why:   Keeps query building and field mapping out of the routes.
How:   Stateless service; every method receives the request's AsyncSession.

Status boundary:
    update_pet() only touches descriptive fields (PetUpdate has no status).
    set_manual_status() is the one narrow lever admins have over status;
    everything else flows through the StatusCoordinator.
"""

import logging
import math
import uuid
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.auth import CallerIdentity
from petnest.exceptions import DatabaseError, NotFoundError, PetNestError
from petnest.models.adoption import Adoption
from petnest.models.enums import PetGender, PetSize, PetStatus, PetType
from petnest.models.pet import Pet
from petnest.schemas.pet import (
    ManualStatusUpdate,
    PetCreate,
    PetListResponse,
    PetResponse,
    PetUpdate,
)
from petnest.services.status_coordinator import status_coordinator

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PetService:
    """
    Business logic for pet listings.

    Responsibilities:
        - list_pets():         filtered, offset-paginated browse
        - get_pet():           single pet with not-found handling
        - create_pet():        admin creates a listing (status Available)
        - update_pet():        admin edits descriptive fields
        - delete_pet():        admin removes a listing
        - set_manual_status(): admin sets/lifts the Not Available override
    """

    async def list_pets(
        self,
        db: AsyncSession,
        pet_type: Optional[PetType] = None,
        gender: Optional[PetGender] = None,
        size: Optional[PetSize] = None,
        status: Optional[PetStatus] = None,
        min_age: Optional[int] = None,
        max_age: Optional[int] = None,
        search: Optional[str] = None,
        location: Optional[str] = None,
        posted_by: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 12,
    ) -> PetListResponse:
        """
        Filtered pet listing, newest first.

        Text filters:
            search   → case-insensitive substring of name, breed, or description
            location → case-insensitive substring of location city
        """
        try:
            filters = []
            if pet_type is not None:
                filters.append(Pet.type == pet_type.value)
            if gender is not None:
                filters.append(Pet.gender == gender.value)
            if size is not None:
                filters.append(Pet.size == size.value)
            if status is not None:
                filters.append(Pet.status == status.value)
            if min_age is not None:
                filters.append(Pet.age >= min_age)
            if max_age is not None:
                filters.append(Pet.age <= max_age)
            if posted_by is not None:
                filters.append(Pet.posted_by_id == posted_by)
            if location:
                filters.append(
                    Pet.location_city.ilike(f"%{_escape_like(location)}%", escape="\\")
                )
            if search:
                pattern = f"%{_escape_like(search)}%"
                filters.append(
                    or_(
                        Pet.name.ilike(pattern, escape="\\"),
                        Pet.breed.ilike(pattern, escape="\\"),
                        Pet.description.ilike(pattern, escape="\\"),
                    )
                )

            query = (
                select(Pet)
                .where(*filters)
                .order_by(Pet.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            result = await db.execute(query)
            pets = list(result.scalars().all())

            count_result = await db.execute(select(func.count(Pet.id)).where(*filters))
            total = count_result.scalar() or 0

            return PetListResponse(
                pets=[PetResponse.from_model(p) for p in pets],
                total=total,
                total_pages=math.ceil(total / limit) if total else 0,
                current_page=page,
            )

        except SQLAlchemyError as e:
            logger.error("Database error listing pets: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve pets. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_pet(self, db: AsyncSession, pet_id: uuid.UUID) -> Pet:
        pet = await db.get(Pet, pet_id)
        if pet is None:
            raise NotFoundError(resource="pet", resource_id=str(pet_id))
        return pet

    async def create_pet(
        self, db: AsyncSession, caller: CallerIdentity, data: PetCreate
    ) -> Pet:
        """New listings always start Available and are owned by the caller."""
        try:
            pet = Pet(
                name=data.name,
                type=data.type.value,
                breed=data.breed,
                age=data.age,
                age_unit=data.age_unit.value,
                gender=data.gender.value,
                size=data.size.value,
                color=data.color,
                description=data.description,
                images=list(data.images),
                special_needs=list(data.special_needs),
                adoption_fee=data.adoption_fee,
                location_city=data.location.city,
                location_state=data.location.state,
                location_country=data.location.country,
                vaccinated=data.health_status.vaccinated,
                spayed_neutered=data.health_status.spayed_neutered,
                health_notes=data.health_status.health_notes,
                status=PetStatus.AVAILABLE.value,
                posted_by_id=caller.user_id,
            )
            db.add(pet)
            await db.flush()
            await db.refresh(pet, attribute_names=["poster"])
            logger.info("Pet %s (%s) listed by %s", pet.id, pet.name, caller.user_id)
            return pet
        except SQLAlchemyError as e:
            logger.error("Database error creating pet: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the pet. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def update_pet(
        self, db: AsyncSession, pet_id: uuid.UUID, data: PetUpdate
    ) -> Pet:
        """Apply the fields present in `data`; status is never among them."""
        pet = await self.get_pet(db, pet_id)
        changes = data.model_dump(exclude_unset=True, mode="json")

        location = changes.pop("location", None)
        if location is not None:
            pet.location_city = location.get("city")
            pet.location_state = location.get("state")
            pet.location_country = location.get("country")

        health = changes.pop("health_status", None)
        if health is not None:
            pet.vaccinated = health.get("vaccinated", False)
            pet.spayed_neutered = health.get("spayed_neutered", False)
            pet.health_notes = health.get("health_notes")

        for field, value in changes.items():
            if value is None and field in {"name", "type", "age", "gender", "size", "description"}:
                continue  # required columns cannot be cleared
            setattr(pet, field, value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating pet %s: %s", pet_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the pet. Please try again.",
                context={"pet_id": str(pet_id)},
            )
        return pet

    async def delete_pet(self, db: AsyncSession, pet_id: uuid.UUID) -> None:
        """Remove the pet together with every application filed for it."""
        try:
            pet = await self.get_pet(db, pet_id)
            # SQLite ignores ON DELETE CASCADE unless foreign_keys is switched on
            removed = await db.execute(delete(Adoption).where(Adoption.pet_id == pet_id))
            await db.delete(pet)
            await db.flush()
        except PetNestError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting pet %s: %s", pet_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the pet. Please try again.",
                context={"pet_id": str(pet_id)},
            )
        logger.info("Pet %s deleted with %d application(s)", pet_id, removed.rowcount)

    async def set_manual_status(
        self, db: AsyncSession, pet_id: uuid.UUID, data: ManualStatusUpdate
    ) -> Pet:
        """
        Set or lift the admin "Not Available" override.

        Not Available → stored as-is; blocks new applications.
        Available     → override lifted; the actual status is re-derived
                        from the adoption records (may land on Pending or
                        Adopted if applications exist).
        """
        try:
            pet = await status_coordinator.lock_pet(db, pet_id)
            previous = pet.status
            if data.status is PetStatus.NOT_AVAILABLE:
                pet.status = PetStatus.NOT_AVAILABLE.value
                await db.flush()
            else:
                await status_coordinator.rederive(db, pet)
            logger.info("Pet %s: manual status %s -> %s", pet.id, previous, pet.status)
            return pet
        except PetNestError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error setting status for pet %s: %s", pet_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the pet status. Please try again.",
                context={"pet_id": str(pet_id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
pet_service = PetService()
