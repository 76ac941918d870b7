"""Pytest configuration and fixtures."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from authsession.config import settings
from authsession.core.security import TokenCodec, get_token_codec, hash_password
from authsession.database import Base, get_db
from authsession.main import app
from authsession.models.account import Account, AccountRole
from authsession.redis import get_redis
from authsession.services.session import SessionManager


# Test database URL (in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

USER_PASSWORD = "TestPass123!"
ADMIN_PASSWORD = "AdminPass123!"


class FrozenClock:
    """Settable wall clock for token issuance and expiry checks."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    mock = AsyncMock()
    mock.ping = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.time = AsyncMock(return_value=(1704067200, 0))
    mock.zrange = AsyncMock(return_value=[])

    # Create a mock pipeline
    pipeline_mock = MagicMock()
    pipeline_mock.zremrangebyscore = MagicMock(return_value=pipeline_mock)
    pipeline_mock.zcard = MagicMock(return_value=pipeline_mock)
    pipeline_mock.zadd = MagicMock(return_value=pipeline_mock)
    pipeline_mock.expire = MagicMock(return_value=pipeline_mock)
    pipeline_mock.execute = AsyncMock(return_value=[0, 0, 1, True])
    mock.pipeline = MagicMock(return_value=pipeline_mock)

    # Create a mock per-account lock usable with "async with"
    lock_mock = MagicMock()
    lock_mock.__aenter__ = AsyncMock(return_value=lock_mock)
    lock_mock.__aexit__ = AsyncMock(return_value=False)
    mock.lock = MagicMock(return_value=lock_mock)

    return mock


@pytest.fixture
def clock() -> FrozenClock:
    """Clock shared by the token codec under test."""
    return FrozenClock()


@pytest.fixture
def codec(clock: FrozenClock) -> TokenCodec:
    """Token codec using the application secrets and the test clock."""
    return TokenCodec(clock=clock)


@pytest.fixture
def session_manager(db_session: AsyncSession, mock_redis, codec: TokenCodec) -> SessionManager:
    """Session manager wired to the test database, mock Redis and test clock."""
    return SessionManager(db_session, mock_redis, codec)


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, mock_redis, codec: TokenCodec
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_token_codec] = lambda: codec

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# Fixture factories for creating test data
@pytest_asyncio.fixture
async def test_account(db_session: AsyncSession) -> Account:
    """Create a regular test account."""
    account = Account(
        id=uuid.uuid4(),
        username="testuser",
        email="test@example.com",
        password_hash=hash_password(USER_PASSWORD),
        role=AccountRole.USER,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession) -> Account:
    """Create a test admin account."""
    account = Account(
        id=uuid.uuid4(),
        username="testadmin",
        email="admin@example.com",
        password_hash=hash_password(ADMIN_PASSWORD),
        role=AccountRole.ADMIN,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest.fixture
def user_token(test_account: Account, codec: TokenCodec) -> str:
    """Create an access token for the test account."""
    return codec.issue_access(str(test_account.id), test_account.role)


def auth_header(token: str) -> dict[str, str]:
    """Create an authorization header with the given token."""
    return {"Authorization": f"Bearer {token}"}


def present_refresh_cookie(client: AsyncClient, refresh_token: str | None) -> None:
    """Replace the client's cookies with the given refresh token (or none)."""
    client.cookies.clear()
    if refresh_token is not None:
        client.cookies.set(settings.refresh_cookie_name, refresh_token)
