"""
PetNest Backend — Adoption Request/Response Schemas
=====================================================

What:  API contracts for filing, deciding, and cancelling applications.

Validation split:
    - Shape (types, enums, lengths) → Pydantic here → 422
    - Business rules (agreement flag, decision target) → AdoptionService → 400
    `agree_to_terms` defaults to False instead of being required so that a
    missing flag reaches the service and gets the specific 400 message.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from petnest.models.enums import AdoptionStatus
from petnest.schemas.pet import PetSummary
from petnest.schemas.user import Address, UserSummary


class ApplicantInfo(BaseModel):
    living_situation: Optional[str] = None
    has_other_pets: Optional[bool] = None
    experience_with_pets: Optional[str] = None
    reason_for_adoption: Optional[str] = None
    agree_to_terms: bool = False


class ContactInfo(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[Address] = None


class AdoptionCreate(BaseModel):
    pet: uuid.UUID = Field(description="ID of the pet being applied for")
    applicant_info: ApplicantInfo = Field(default_factory=ApplicantInfo)
    contact_info: Optional[ContactInfo] = Field(
        default=None,
        description="Defaults to the applicant's profile contact details",
    )
    notes: Optional[str] = None


class AdoptionDecision(BaseModel):
    """Body of PUT /api/adoptions/{id}/status (admin only)."""
    status: AdoptionStatus
    notes: Optional[str] = None


class AdoptionResponse(BaseModel):
    id: uuid.UUID
    status: AdoptionStatus
    pet: PetSummary
    applicant: UserSummary
    application_date: datetime
    review_date: Optional[datetime] = None
    reviewed_by: Optional[uuid.UUID] = Field(default=None, validation_alias="reviewed_by_id")
    notes: Optional[str] = None
    applicant_info: ApplicantInfo
    contact_info: ContactInfo

    model_config = {"from_attributes": True, "populate_by_name": True}
