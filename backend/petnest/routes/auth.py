"""
PetNest Backend — Auth Route Handlers
=======================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
How:   Delegates to UserService; issues a JWT via petnest.auth.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.auth import CallerIdentity, create_access_token, get_current_caller
from petnest.database import get_db_session
from petnest.schemas.common import ErrorResponse
from petnest.schemas.user import TokenResponse, UserCreate, UserLogin, UserResponse
from petnest.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _token_response(user) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/register",
    status_code=201,
    response_model=TokenResponse,
    responses={400: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Register a new user account",
)
async def register(
    data: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user = await user_service.create_user(db, data)
    return _token_response(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for an access token",
)
async def login(
    data: UserLogin,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user = await user_service.authenticate(db, data.email, data.password)
    return _token_response(user)


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Current user's profile",
)
async def me(
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.get_user(db, caller.user_id)
    return UserResponse.model_validate(user)
