"""
PetNest Backend — User Route Handlers
=======================================

What:  Admin user listing plus self-service profile read/update.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.auth import CallerIdentity, get_current_caller, require_admin
from petnest.database import get_db_session
from petnest.schemas.common import ErrorResponse
from petnest.schemas.user import UserResponse, UserUpdate
from petnest.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=List[UserResponse], summary="List all users (admin)")
async def list_users(
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserResponse]:
    users = await user_service.list_users(db)
    return [UserResponse.model_validate(u) for u in users]


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        403: {"description": "Not your profile", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get a user profile (self or admin)",
)
async def get_user(
    user_id: UUID,
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.get_visible_user(db, caller, user_id)
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        403: {"description": "Not your profile", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Update a user profile (self or admin)",
)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.update_profile(db, caller, user_id, data)
    return UserResponse.model_validate(user)
