"""
PetNest Backend — User Service
================================

What:  Registration, login, and profile management.
Who:   Called by routes/auth.py and routes/users.py.

Security Notes:
    - Emails are normalized to lower case before storage and lookup.
    - Login failures use one message for "no such user" and "wrong
      password" so the endpoint cannot be used to enumerate accounts.
    - Self-registration always creates role=user; admins are provisioned
      out of band (see create_user(role=...)).
"""

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petnest.auth import CallerIdentity, hash_password, verify_password
from petnest.exceptions import (
    AuthenticationError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from petnest.models.enums import UserRole
from petnest.models.user import User
from petnest.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:

    async def create_user(
        self,
        db: AsyncSession,
        data: UserCreate,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Insert a new user with a hashed password.

        Raises:
            ValidationError: email already registered
        """
        email = data.email.lower()
        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(message="User already exists", field="email")

        user = User(
            name=data.name,
            email=email,
            password_hash=hash_password(data.password),
            role=role.value,
            phone=data.phone,
            address=data.address.model_dump() if data.address else None,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            raise ValidationError(message="User already exists", field="email")
        logger.info("User %s registered (role=%s)", user.id, user.role)
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        result = await db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt for %s", email.lower())
            raise AuthenticationError(message="Invalid credentials")
        return user

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def get_visible_user(
        self, db: AsyncSession, caller: CallerIdentity, user_id: uuid.UUID
    ) -> User:
        """Users can only see their own profile unless admin."""
        if user_id != caller.user_id and not caller.is_admin:
            raise UnauthorizedError(message="Not authorized")
        return await self.get_user(db, user_id)

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def update_profile(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        user_id: uuid.UUID,
        data: UserUpdate,
    ) -> User:
        """Profile edits; password and role are not reachable from here."""
        user = await self.get_visible_user(db, caller, user_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") is not None:
            user.name = changes["name"].strip()
        if "phone" in changes:
            user.phone = changes["phone"]
        if "address" in changes:
            user.address = changes["address"]
        await db.flush()
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
