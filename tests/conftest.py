"""
Deskmate Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Unit tests run services against a real in-memory SQLite database
       (aiosqlite + StaticPool), so ownership scoping and ordering are
       exercised by actual SQL. API tests drive a fresh app over
       httpx's ASGITransport with the session dependency pointed at that
       same database.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: AsyncMock session for error-path tests
    ├── db_engine:       in-memory engine with all tables created
    ├── db_session:      session on db_engine, for service tests
    ├── token_service:   TokenService with a fixed test secret
    ├── credential_store: CredentialStore with a cheap bcrypt work factor
    ├── account:         a registered account
    ├── app:             FastAPI app wired to db_engine
    └── test_client:     HTTPX AsyncClient for endpoint tests
"""

import os

# Override settings BEFORE any deskmate imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from deskmate.config import Settings  # noqa: E402
from deskmate.database import Base, build_engine, get_db_session  # noqa: E402
from deskmate.models import account as _account_models  # noqa: E402,F401
from deskmate.models import resource as _resource_models  # noqa: E402,F401
from deskmate.services.credential_store import CredentialStore  # noqa: E402
from deskmate.services.token_service import TokenService  # noqa: E402

TEST_SECRET = os.environ["SECRET_KEY"]


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    """A private in-memory database per test. StaticPool keeps it alive."""
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Service Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
def credential_store():
    # 4 is bcrypt's minimum work factor; keeps the suite fast
    return CredentialStore(bcrypt_rounds=4)


@pytest_asyncio.fixture
async def account(db_session, credential_store):
    """A registered account: ada@example.com / correct-horse."""
    created = await credential_store.register(
        db_session, username="Ada Lovelace", email="ada@example.com", password="correct-horse",
    )
    await db_session.commit()
    return created


@pytest_asyncio.fixture
async def other_account(db_session, credential_store):
    created = await credential_store.register(
        db_session, username="Grace Hopper", email="grace@example.com", password="cobol-1959",
    )
    await db_session.commit()
    return created


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite://",
        secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        auto_create_tables=False,
        log_level="WARNING",
    )


@pytest.fixture
def app(test_settings, session_factory):
    """
    A fresh app whose request sessions use the test database.

    The override mirrors get_db_session: commit on success, rollback on error.
    """
    from deskmate.main import create_app

    application = create_app(test_settings)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_header():
    """Build an Authorization header from a token."""
    def _build(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}
    return _build
