"""
PetNest Backend — Authentication & Authorization
==================================================

What:  Password hashing, JWT issuing/verification, and the FastAPI
       dependencies that turn a bearer token into a caller identity.
Why:   The adoption workflow only needs "who is calling and are they an
       admin"; it trusts this module's answer without re-checking credentials.
How:   - passlib CryptContext (pbkdf2_sha256) for password hashes
       - PyJWT HS256 tokens carrying `sub` (user id) and `role`
       - get_current_caller / require_admin as route dependencies

Failure mapping:
    Missing/invalid/expired token → AuthenticationError (401)
    Valid token, wrong role       → UnauthorizedError (403)
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from petnest.config import settings
from petnest.exceptions import AuthenticationError, UnauthorizedError
from petnest.models.enums import UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# auto_error=False: a missing header reaches get_current_caller, which raises
# our AuthenticationError so the response uses the standard error body
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    """Verified identity of the user making the request."""
    user_id: uuid.UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


# ── Tokens ────────────────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue a signed access token for the given user."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> CallerIdentity:
    """
    Verify signature and expiry, then build a CallerIdentity.

    Raises:
        AuthenticationError: token expired, tampered with, or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token has expired")
    except jwt.PyJWTError as e:
        logger.debug("Rejected token: %s", e)
        raise AuthenticationError(message="Invalid authentication token")

    try:
        return CallerIdentity(
            user_id=uuid.UUID(payload["sub"]),
            role=UserRole(payload.get("role", UserRole.USER.value)),
        )
    except ValueError:
        raise AuthenticationError(message="Invalid authentication token")


# ── Dependencies ──────────────────────────────────────────────────────────

async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CallerIdentity:
    """FastAPI dependency: any authenticated user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="No token, authorization denied")
    return decode_access_token(credentials.credentials)


async def require_admin(
    caller: CallerIdentity = Depends(get_current_caller),
) -> CallerIdentity:
    """FastAPI dependency: authenticated admin only."""
    if not caller.is_admin:
        raise UnauthorizedError(message="Admin access required")
    return caller
