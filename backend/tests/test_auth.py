"""
PetNest Backend — Auth & User Service Tests
=============================================

What we test:
    ✅ Password hashing round-trip
    ✅ Token issue/decode, expiry, tampering
    ✅ Registration: email normalization, duplicate email
    ✅ Login: wrong password and unknown email share one error
    ✅ Profile visibility: self or admin only
"""

from datetime import timedelta

import jwt
import pytest

from petnest.auth import (
    create_access_token,
    decode_access_token,
    get_current_caller,
    hash_password,
    require_admin,
    verify_password,
)
from petnest.config import settings
from petnest.exceptions import AuthenticationError, UnauthorizedError, ValidationError
from petnest.models.enums import UserRole
from petnest.schemas.user import UserCreate, UserUpdate
from petnest.services.user_service import UserService


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("hunter22")
        assert hashed != "hunter22"
        assert verify_password("hunter22", hashed)
        assert not verify_password("hunter23", hashed)


class TestTokens:

    def test_round_trip(self):
        import uuid

        user_id = uuid.uuid4()
        token = create_access_token(user_id, UserRole.ADMIN.value)
        caller = decode_access_token(token)
        assert caller.user_id == user_id
        assert caller.is_admin

    def test_expired_token(self):
        import uuid

        token = create_access_token(uuid.uuid4(), "user", expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.message == "Token has expired"

    def test_wrong_signature(self):
        forged = jwt.encode(
            {"sub": "00000000-0000-0000-0000-000000000000", "role": "admin", "exp": 9999999999},
            "not-the-secret",
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(forged)

    def test_garbage_subject(self):
        token = jwt.encode(
            {"sub": "not-a-uuid", "exp": 9999999999},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(AuthenticationError):
            await get_current_caller(None)

    @pytest.mark.asyncio
    async def test_require_admin_refuses_users(self):
        import uuid

        caller = decode_access_token(create_access_token(uuid.uuid4(), "user"))
        with pytest.raises(UnauthorizedError):
            await require_admin(caller)


class TestUserService:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_register_normalizes_email(self, db_session):
        user = await self.service.create_user(
            db_session,
            UserCreate(name=" Carol ", email="Carol@Example.com", password="secret123"),
        )
        assert user.email == "carol@example.com"
        assert user.name == "Carol"
        assert user.role == UserRole.USER.value
        assert user.password_hash != "secret123"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db_session, applicant):
        with pytest.raises(ValidationError):
            await self.service.create_user(
                db_session,
                UserCreate(name="Other", email="ALICE@example.com", password="secret123"),
            )

    @pytest.mark.asyncio
    async def test_login(self, db_session, applicant):
        user = await self.service.authenticate(db_session, "Alice@Example.com", "secret123")
        assert user.id == applicant.id

    @pytest.mark.asyncio
    async def test_login_failures_share_message(self, db_session, applicant):
        with pytest.raises(AuthenticationError) as wrong_password:
            await self.service.authenticate(db_session, "alice@example.com", "nope")
        with pytest.raises(AuthenticationError) as unknown_email:
            await self.service.authenticate(db_session, "nobody@example.com", "secret123")
        assert wrong_password.value.message == unknown_email.value.message

    @pytest.mark.asyncio
    async def test_profile_visibility(
        self, db_session, admin, applicant, other_applicant, caller_for
    ):
        with pytest.raises(UnauthorizedError):
            await self.service.get_visible_user(
                db_session, caller_for(other_applicant), applicant.id
            )
        seen = await self.service.get_visible_user(db_session, caller_for(admin), applicant.id)
        assert seen.id == applicant.id

    @pytest.mark.asyncio
    async def test_update_profile(self, db_session, applicant, caller_for):
        updated = await self.service.update_profile(
            db_session,
            caller_for(applicant),
            applicant.id,
            UserUpdate(phone="555-0199"),
        )
        assert updated.phone == "555-0199"
        assert updated.name == "Alice Applicant"
