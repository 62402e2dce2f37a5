"""
PetNest Backend — Pet Request/Response Schemas
================================================

What:  API contracts for pet listings.
Why:   PetCreate/PetUpdate carry descriptive fields only. `status` and
       `adopted_by` are absent on purpose: they are owned by the adoption
       workflow, and the only manual lever is ManualStatusUpdate.
How:   Nested location/health objects on the wire map onto flat columns
       in the ORM model (see PetResponse.from_model).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from petnest.models.enums import AgeUnit, PetGender, PetSize, PetStatus, PetType
from petnest.schemas.user import UserSummary


class Location(BaseModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class HealthStatus(BaseModel):
    vaccinated: bool = False
    spayed_neutered: bool = False
    health_notes: Optional[str] = None


class PetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    type: PetType
    breed: Optional[str] = Field(default=None, max_length=120)
    age: int = Field(ge=0)
    age_unit: AgeUnit = AgeUnit.MONTHS
    gender: PetGender
    size: PetSize
    color: Optional[str] = Field(default=None, max_length=60)
    description: str = Field(min_length=1)
    images: List[str] = Field(default_factory=list)
    location: Location = Field(default_factory=Location)
    health_status: HealthStatus = Field(default_factory=HealthStatus)
    special_needs: List[str] = Field(default_factory=list)
    adoption_fee: float = Field(default=0, ge=0)

    @field_validator("name", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class PetUpdate(BaseModel):
    """Partial update of descriptive fields; unset fields are left alone."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    type: Optional[PetType] = None
    breed: Optional[str] = Field(default=None, max_length=120)
    age: Optional[int] = Field(default=None, ge=0)
    age_unit: Optional[AgeUnit] = None
    gender: Optional[PetGender] = None
    size: Optional[PetSize] = None
    color: Optional[str] = Field(default=None, max_length=60)
    description: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = None
    location: Optional[Location] = None
    health_status: Optional[HealthStatus] = None
    special_needs: Optional[List[str]] = None
    adoption_fee: Optional[float] = Field(default=None, ge=0)

    model_config = {"extra": "forbid"}


class ManualStatusUpdate(BaseModel):
    """
    Body of PUT /api/pets/{id}/status.

    "Not Available" hides the pet from new applications.
    "Available" lifts the override; the real status is then re-derived
    from the pet's adoption records.
    """
    status: PetStatus

    @field_validator("status")
    @classmethod
    def manual_values_only(cls, v: PetStatus) -> PetStatus:
        if v not in (PetStatus.AVAILABLE, PetStatus.NOT_AVAILABLE):
            raise ValueError(
                "Manual status must be 'Available' or 'Not Available'; "
                "'Pending' and 'Adopted' are set by the adoption workflow"
            )
        return v


class PetResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: PetType
    breed: Optional[str] = None
    age: int
    age_unit: AgeUnit
    gender: PetGender
    size: PetSize
    color: Optional[str] = None
    description: str
    images: List[str]
    status: PetStatus
    location: Location
    health_status: HealthStatus
    special_needs: List[str]
    adoption_fee: float
    posted_by: Optional[UserSummary] = None
    adopted_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, pet) -> "PetResponse":
        return cls(
            id=pet.id,
            name=pet.name,
            type=pet.type,
            breed=pet.breed,
            age=pet.age,
            age_unit=pet.age_unit,
            gender=pet.gender,
            size=pet.size,
            color=pet.color,
            description=pet.description,
            images=list(pet.images or []),
            status=pet.status,
            location=Location(
                city=pet.location_city,
                state=pet.location_state,
                country=pet.location_country,
            ),
            health_status=HealthStatus(
                vaccinated=pet.vaccinated,
                spayed_neutered=pet.spayed_neutered,
                health_notes=pet.health_notes,
            ),
            special_needs=list(pet.special_needs or []),
            adoption_fee=float(pet.adoption_fee or 0),
            posted_by=UserSummary.model_validate(pet.poster) if pet.poster else None,
            adopted_by=pet.adopted_by_id,
            created_at=pet.created_at,
            updated_at=pet.updated_at,
        )


class PetSummary(BaseModel):
    """Compact pet reference embedded in adoption payloads."""
    id: uuid.UUID
    name: str
    type: PetType
    breed: Optional[str] = None
    status: PetStatus
    images: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class PetListResponse(BaseModel):
    """
    Offset-paginated listing.

    The public browse page shows numbered pages ("page 3 of 9"), so this
    endpoint uses page/limit rather than a cursor.
    """
    pets: List[PetResponse]
    total: int
    total_pages: int
    current_page: int
