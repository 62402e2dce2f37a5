"""
PetNest Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool so all sessions share the one connection) with the
       schema created from Base.metadata.

Fixture Hierarchy (all function-scoped):
    ├── engine:        in-memory database with tables created
    ├── db_session:    AsyncSession for service-level tests
    ├── make_user / make_pet: factories that insert rows directly
    ├── applicant, other_applicant, admin: ready-made users
    ├── caller_for:    turns a User into a CallerIdentity
    └── test_client:   HTTPX AsyncClient with get_db_session overridden
"""

import os

# Override settings for testing BEFORE any petnest imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ADOPTION_ALLOW_REDECISION"] = "false"
os.environ["ADOPTION_AUTO_REJECT_ON_APPROVAL"] = "false"

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from petnest.auth import CallerIdentity, create_access_token, hash_password  # noqa: E402
from petnest.database import Base, get_db_session  # noqa: E402
from petnest.models.adoption import Adoption  # noqa: E402,F401
from petnest.models.enums import PetStatus, UserRole  # noqa: E402
from petnest.models.pet import Pet  # noqa: E402
from petnest.models.user import User  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Session for service-level tests.

    Services only flush; tests that need to observe "what a later request
    would see" call commit() or open a second session themselves.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    async def _make_user(
        name: str = "Test User",
        email: str | None = None,
        role: UserRole = UserRole.USER,
        password: str = "secret123",
    ) -> User:
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role.value,
            phone="555-0100",
            address={"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701"},
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_pet(db_session):

    async def _make_pet(
        poster: User,
        name: str = "Biscuit",
        status: PetStatus = PetStatus.AVAILABLE,
        **fields,
    ) -> Pet:
        values = {
            "type": "Dog",
            "breed": "Beagle",
            "age": 2,
            "age_unit": "years",
            "gender": "Male",
            "size": "Medium",
            "description": "Friendly and house-trained",
            "images": [],
            "special_needs": [],
            "adoption_fee": 50.0,
            "location_city": "Springfield",
        }
        values.update(fields)
        pet = Pet(name=name, status=status.value, posted_by_id=poster.id, **values)
        db_session.add(pet)
        await db_session.commit()
        await db_session.refresh(pet, attribute_names=["poster"])
        return pet

    return _make_pet


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user(name="Shelter Admin", email="admin@example.com", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def applicant(make_user) -> User:
    return await make_user(name="Alice Applicant", email="alice@example.com")


@pytest_asyncio.fixture
async def other_applicant(make_user) -> User:
    return await make_user(name="Bob Applicant", email="bob@example.com")


@pytest.fixture
def caller_for():
    def _caller_for(user: User) -> CallerIdentity:
        return CallerIdentity(user_id=user.id, role=UserRole(user.role))
    return _caller_for


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = create_access_token(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    get_db_session is overridden so each request gets its own session on
    the test database, committed or rolled back exactly like production.
    """
    from petnest.main import app

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
