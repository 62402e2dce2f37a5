"""
PetNest Backend — Adoption Route Handlers
===========================================

What:  HTTP surface of the adoption workflow.
Who:   Called by the frontend application form, "My Applications" page,
       and the admin dashboard.

Route Inventory:
    GET  /api/adoptions              own applications (non-admin)
    GET  /api/adoptions/admin        every application (admin)
    GET  /api/adoptions/{id}         one application (applicant or admin)
    POST /api/adoptions              file an application → 201
    PUT  /api/adoptions/{id}/status  admin decision
    PUT  /api/adoptions/{id}/cancel  applicant withdraws

Routes stay thin: authorization rules that depend on the adoption itself
(ownership, pending-only) live in AdoptionService.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.auth import CallerIdentity, get_current_caller, require_admin
from petnest.database import get_db_session
from petnest.models.enums import AdoptionStatus
from petnest.schemas.adoption import AdoptionCreate, AdoptionDecision, AdoptionResponse
from petnest.schemas.common import ErrorResponse
from petnest.services.adoption_service import adoption_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/adoptions", tags=["Adoptions"])

_ERRORS = {
    400: {"description": "Precondition failed", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Not allowed for this caller", "model": ErrorResponse},
    404: {"description": "Pet or adoption not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[AdoptionResponse],
    responses=_ERRORS,
    summary="List my adoption applications",
)
async def list_my_adoptions(
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db_session),
) -> List[AdoptionResponse]:
    adoptions = await adoption_service.list_for_applicant(db, caller)
    return [AdoptionResponse.model_validate(a) for a in adoptions]


@router.get(
    "/admin",
    response_model=List[AdoptionResponse],
    responses=_ERRORS,
    summary="List all adoption applications (admin)",
)
async def list_all_adoptions(
    status: AdoptionStatus | None = Query(default=None),
    pet_id: UUID | None = Query(default=None, alias="pet"),
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[AdoptionResponse]:
    adoptions = await adoption_service.list_all(db, caller, status=status, pet_id=pet_id)
    return [AdoptionResponse.model_validate(a) for a in adoptions]


@router.get(
    "/{adoption_id}",
    response_model=AdoptionResponse,
    responses=_ERRORS,
    summary="Get one adoption application",
)
async def get_adoption(
    adoption_id: UUID,
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db_session),
) -> AdoptionResponse:
    adoption = await adoption_service.get_adoption(db, caller, adoption_id)
    return AdoptionResponse.model_validate(adoption)


@router.post(
    "",
    status_code=201,
    response_model=AdoptionResponse,
    responses=_ERRORS,
    summary="Apply to adopt a pet",
    description=(
        "Files a Pending application and moves the pet from Available to Pending. "
        "Requires applicant_info.agree_to_terms=true."
    ),
)
async def create_adoption(
    data: AdoptionCreate,
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db_session),
) -> AdoptionResponse:
    adoption = await adoption_service.create_application(db, caller, data)
    return AdoptionResponse.model_validate(adoption)


@router.put(
    "/{adoption_id}/status",
    response_model=AdoptionResponse,
    responses=_ERRORS,
    summary="Approve, reject, or cancel an application (admin)",
)
async def decide_adoption(
    adoption_id: UUID,
    decision: AdoptionDecision,
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdoptionResponse:
    adoption = await adoption_service.decide(db, caller, adoption_id, decision)
    return AdoptionResponse.model_validate(adoption)


@router.put(
    "/{adoption_id}/cancel",
    response_model=AdoptionResponse,
    responses=_ERRORS,
    summary="Withdraw my pending application",
)
async def cancel_adoption(
    adoption_id: UUID,
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db_session),
) -> AdoptionResponse:
    adoption = await adoption_service.cancel(db, caller, adoption_id)
    return AdoptionResponse.model_validate(adoption)
