"""
Pytest configuration and fixtures for the backend tests.

Every test gets its own SQLite database file, so tests never share rows.
"""
import os
import tempfile
import itertools
from decimal import Decimal
from typing import AsyncGenerator

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{tempfile.gettempdir()}/pulse_social_unused.db")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="pulse-social-logs-"))
os.environ.setdefault("NOTIFICATIONS_ENABLED", "true")

import pytest
from faker import Faker
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from main import app
from db.session import Base, get_db_session
from db.models.user import User as UserModel
from db.models.post import Post as PostModel
from db.models.premium import PremiumPackage as PremiumPackageModel
from core.security import get_password_hash, create_access_token

# Initialize Faker for test data generation
fake = Faker()

TEST_PASSWORD = "testpassword123"
# Hashing is slow on purpose; do it once for every factory-made user
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)

_sequence = itertools.count(1)


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session handed straight to service functions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with the request session bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    async def _make(**overrides) -> UserModel:
        n = next(_sequence)
        data = {
            "username": f"user{n}_{fake.user_name()}"[:50],
            "email": f"user{n}@example.com",
            "password_hash": TEST_PASSWORD_HASH,
            "full_name": fake.name(),
            "balance": Decimal("0.00"),
        }
        data.update(overrides)
        user = UserModel(**data)
        db_session.add(user)
        await db_session.commit()
        return user
    return _make


@pytest.fixture
def make_post(db_session):
    async def _make(author: UserModel, **overrides) -> PostModel:
        data = {"user_id": author.id, "content": fake.sentence()}
        data.update(overrides)
        post = PostModel(**data)
        db_session.add(post)
        await db_session.commit()
        return post
    return _make


@pytest.fixture
def make_package(db_session):
    async def _make(**overrides) -> PremiumPackageModel:
        data = {
            "name": f"{fake.color_name()} plan",
            "description": fake.sentence(),
            "price": Decimal("19.99"),
            "duration_days": 30,
            "features": ["no_ads", "badge"],
            "is_active": True,
        }
        data.update(overrides)
        package = PremiumPackageModel(**data)
        db_session.add(package)
        await db_session.commit()
        return package
    return _make


def auth_headers(user: UserModel) -> dict:
    """Bearer header for a user, as issued by login."""
    token = create_access_token({"sub": str(user.id), "email": user.email, "is_admin": bool(user.is_admin)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_user_data():
    """Registration payload for testing."""
    n = next(_sequence)
    return {
        "username": f"member{n}",
        "email": f"member{n}@example.com",
        "full_name": fake.name(),
        "password": TEST_PASSWORD,
        "bio": fake.sentence(),
    }
