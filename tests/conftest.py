"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from api.main import create_app
from core.config import Settings
from core.security import PasswordHasher
from models.base import Base
from models.user import User
from services.exceptions import ConnectionFailedError
from services.token_service import TokenService

TEST_JWT_SECRET = "test-secret-do-not-use-in-production"
TEST_PASSWORD = "password123"


class SQLiteSessionProvider:
    """
    In-memory SQLite storage for tests.

    StaticPool keeps a single connection alive, so every session sees the same
    database for the lifetime of the provider. Setting `available` to False
    makes `acquire` fail the way an unreachable server would.
    """

    def __init__(self) -> None:
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.available = True

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncSession]:
        """Yield a session, or raise ConnectionFailedError when unavailable."""
        if not self.available:
            raise ConnectionFailedError()
        async with self._session_factory() as session:
            yield session

    async def create_schema(self) -> None:
        """Create all tables from the ORM metadata."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close the shared connection, discarding the database."""
        await self.engine.dispose()


@pytest.fixture
def settings() -> Settings:
    """Settings for tests: a fixed secret and the cheapest bcrypt cost."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture
async def session_provider() -> AsyncGenerator[SQLiteSessionProvider]:
    """Fresh in-memory database with the schema created."""
    provider = SQLiteSessionProvider()
    await provider.create_schema()
    yield provider
    await provider.dispose()


@pytest.fixture
async def db_session(
    session_provider: SQLiteSessionProvider,
) -> AsyncGenerator[AsyncSession]:
    """Session for calling services directly."""
    async with session_provider.acquire() as session:
        yield session


@pytest.fixture
def hasher() -> PasswordHasher:
    """Password hasher with the minimum bcrypt cost."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    """Token service using the same secret as the test app."""
    return TokenService(TEST_JWT_SECRET)


@pytest.fixture
async def test_user(db_session: AsyncSession, hasher: PasswordHasher) -> User:
    """Create a test user with TEST_PASSWORD."""
    user = User(
        email="player@poker.io",
        username="player",
        password_hash=hasher.hash(TEST_PASSWORD),
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession, hasher: PasswordHasher) -> User:
    """Create another test user for isolation tests."""
    user = User(
        email="rival@poker.io",
        username="rival",
        password_hash=hasher.hash(TEST_PASSWORD),
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
def app(settings: Settings, session_provider: SQLiteSessionProvider) -> FastAPI:
    """Application wired to the in-memory database."""
    return create_app(settings, session_provider=session_provider)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an unauthenticated test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client


RegisterFn = Callable[..., Awaitable[dict]]


@pytest.fixture
def register(client: AsyncClient) -> RegisterFn:
    """Register an account through the API and return the response body."""

    async def _register(
        email: str = "a@b.com",
        username: str = "abc",
        password: str = TEST_PASSWORD,
    ) -> dict:
        response = await client.post(
            "/api/auth/register",
            json={"email": email, "username": username, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
async def auth_headers(register: RegisterFn) -> dict[str, str]:
    """Authorization header for a freshly registered default user."""
    body = await register()
    return {"Authorization": f"Bearer {body['token']}"}
