"""Global test fixtures and utilities for sleep journal tests"""
import os

# Must be set before the app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-sleep-journal-suite")

import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import User, SleepEntry
from app.utils.security import EntryAccess, get_password_hash


TEST_PASSWORD = "Sleep@Well1"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
async def engine():
    """In-memory SQLite engine shared by every session in one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ============================================================================
# User Fixtures
# ============================================================================

async def make_user(session: AsyncSession, email: str, display_name: str = "Test Sleeper") -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(TEST_PASSWORD),
        display_name=display_name,
    )
    session.add(user)
    await session.flush()
    return user


@pytest.fixture
async def test_user(db_session):
    return await make_user(db_session, "sleeper@example.com", "Test Sleeper")


@pytest.fixture
async def other_user(db_session):
    return await make_user(db_session, "night.owl@example.com", "Night Owl")


@pytest.fixture
def test_access(test_user):
    return EntryAccess(user_id=test_user.id)


@pytest.fixture
def other_access(other_user):
    return EntryAccess(user_id=other_user.id)


# ============================================================================
# Sleep Fixtures
# ============================================================================

@pytest.fixture
def sleep_entry_payload():
    """Valid request body for creating a sleep entry"""
    return {
        "username": "test_sleeper",
        "changes": ["Fall asleep faster"],
        "sleep_struggle": {"min": 0, "max": 2},
        "bed_time": "23:30",
        "wake_time": "06:00",
        "sleep_duration": 6.5,
        "sleep_quality": 7,
        "sleep_efficiency": 85,
        "notes": "Woke up once",
        "tags": ["weekday"],
        "is_public": False,
    }


@pytest.fixture
def entry_factory(db_session):
    """Insert entries with explicit creation times, oldest first"""
    async def _create(user, durations, qualities=None, efficiencies=None, is_public=False):
        base = datetime(2024, 1, 1, 7, 0, 0)
        entries = []
        for i, duration in enumerate(durations):
            entry = SleepEntry(
                user_id=user.id,
                username="test_sleeper",
                changes=[],
                tags=[],
                bed_time="23:00",
                wake_time="07:00",
                sleep_duration=duration,
                sleep_quality=qualities[i] if qualities else 5,
                sleep_efficiency=efficiencies[i] if efficiencies else 80,
                is_public=is_public,
                created_at=base + timedelta(days=i),
            )
            db_session.add(entry)
            entries.append(entry)
        await db_session.flush()
        return entries

    return _create


# ============================================================================
# HTTP & API Fixtures
# ============================================================================

@pytest.fixture
async def client(session_factory):
    """HTTP client against the app, backed by the test database"""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def password():
    """Password every test account is created with"""
    return TEST_PASSWORD


@pytest.fixture
def register_user(client):
    """Register an account through the API and return the token response"""
    async def _register(email: str, display_name: str = "Test Sleeper") -> dict:
        response = await client.post(
            "/api/auth/register",
            json={"display_name": display_name, "email": email, "password": TEST_PASSWORD},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
async def auth_headers(register_user):
    token = await register_user("sleeper@example.com")
    return {"Authorization": f"Bearer {token['access_token']}"}


@pytest.fixture
async def other_auth_headers(register_user):
    token = await register_user("night.owl@example.com", "Night Owl")
    return {"Authorization": f"Bearer {token['access_token']}"}
