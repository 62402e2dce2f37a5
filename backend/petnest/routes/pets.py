"""
PetNest Backend — Pet Route Handlers
======================================

What:  Public browsing (GET) and admin maintenance (POST/PUT/DELETE) of pets.
How:   Extracts query parameters, delegates to PetService, returns JSON.

Status changes:
    PUT /api/pets/{id}         → descriptive fields only (status rejected, 422)
    PUT /api/pets/{id}/status  → manual "Not Available" override, admin only
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.auth import CallerIdentity, require_admin
from petnest.database import get_db_session
from petnest.models.enums import PetGender, PetSize, PetStatus, PetType
from petnest.schemas.common import ErrorResponse, MessageResponse
from petnest.schemas.pet import (
    ManualStatusUpdate,
    PetCreate,
    PetListResponse,
    PetResponse,
    PetUpdate,
)
from petnest.services.pet_service import pet_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pets", tags=["Pets"])


@router.get(
    "",
    response_model=PetListResponse,
    summary="Browse pets with filters and pagination",
)
async def list_pets(
    response: Response,
    pet_type: PetType | None = Query(
        default=None, alias="type", description="Dog, Cat, Bird, Rabbit, Other"
    ),
    gender: PetGender | None = Query(default=None),
    size: PetSize | None = Query(default=None),
    status: PetStatus | None = Query(default=None),
    min_age: int | None = Query(default=None, ge=0, alias="minAge"),
    max_age: int | None = Query(default=None, ge=0, alias="maxAge"),
    search: str | None = Query(default=None, description="Matches name, breed, or description"),
    location: str | None = Query(default=None, description="Matches location city"),
    posted_by: UUID | None = Query(default=None, alias="postedBy"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> PetListResponse:
    result = await pet_service.list_pets(
        db,
        pet_type=pet_type,
        gender=gender,
        size=size,
        status=status,
        min_age=min_age,
        max_age=max_age,
        search=search,
        location=location,
        posted_by=posted_by,
        page=page,
        limit=limit,
    )
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/{pet_id}",
    response_model=PetResponse,
    responses={404: {"description": "Pet not found", "model": ErrorResponse}},
    summary="Get a single pet",
)
async def get_pet(
    pet_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PetResponse:
    pet = await pet_service.get_pet(db, pet_id)
    return PetResponse.from_model(pet)


@router.post(
    "",
    status_code=201,
    response_model=PetResponse,
    responses={403: {"description": "Admin access required", "model": ErrorResponse}},
    summary="List a new pet (admin)",
)
async def create_pet(
    data: PetCreate,
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> PetResponse:
    pet = await pet_service.create_pet(db, caller, data)
    return PetResponse.from_model(pet)


@router.put(
    "/{pet_id}",
    response_model=PetResponse,
    responses={
        403: {"description": "Admin access required", "model": ErrorResponse},
        404: {"description": "Pet not found", "model": ErrorResponse},
    },
    summary="Edit a pet's descriptive fields (admin)",
)
async def update_pet(
    pet_id: UUID,
    data: PetUpdate,
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> PetResponse:
    pet = await pet_service.update_pet(db, pet_id, data)
    return PetResponse.from_model(pet)


@router.put(
    "/{pet_id}/status",
    response_model=PetResponse,
    responses={
        403: {"description": "Admin access required", "model": ErrorResponse},
        404: {"description": "Pet not found", "model": ErrorResponse},
    },
    summary="Set or lift the manual 'Not Available' override (admin)",
)
async def set_manual_status(
    pet_id: UUID,
    data: ManualStatusUpdate,
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> PetResponse:
    pet = await pet_service.set_manual_status(db, pet_id, data)
    return PetResponse.from_model(pet)


@router.delete(
    "/{pet_id}",
    response_model=MessageResponse,
    responses={
        403: {"description": "Admin access required", "model": ErrorResponse},
        404: {"description": "Pet not found", "model": ErrorResponse},
    },
    summary="Delete a pet (admin)",
)
async def delete_pet(
    pet_id: UUID,
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await pet_service.delete_pet(db, pet_id)
    return MessageResponse(message="Pet deleted successfully")
