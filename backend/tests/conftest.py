"""
StaffDir Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the test suite.
Why:   Tests must never touch a real database or depend on wall-clock time.
How:   Environment is set before the package is imported so the settings
       singleton and module-level app never see production values. Every
       test gets its own SQLite file, schema, app instance and clock.

Fixtures:
    clock           controllable time source for tokens and rate limits
    db_engine       aiosqlite engine on a per-test file, schema created
    session_factory async_sessionmaker bound to db_engine
    db_session      one AsyncSession
    hasher          PasswordHasher with the minimum bcrypt cost (fast)
    token_service   TokenService driven by `clock`
    rate_limiter    FixedWindowRateLimiter driven by `clock`
    app             create_app() with the above injected and the DB overridden
    client          httpx AsyncClient talking to `app` over ASGITransport
"""

import os
import tempfile

os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='staffdir_test_')}/default.db"
)
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["CORS_ORIGIN"] = "http://localhost:3000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from staffdir.database import create_schema, get_db_session
from staffdir.main import create_app
from staffdir.middleware.rate_limit import FixedWindowRateLimiter
from staffdir.services.password_hasher import PasswordHasher
from staffdir.services.token_service import TokenService

TEST_SECRET = "test-secret-not-for-production"
ALLOWED_ORIGIN = "http://localhost:3000"


class FakeClock:
    """Callable clock; tests move time with advance()."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'staffdir.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service(clock):
    return TokenService(secret=TEST_SECRET, lifetime_seconds=3600, clock=clock)


@pytest.fixture
def rate_limiter(clock):
    return FixedWindowRateLimiter(limit=1000, window_seconds=900, clock=clock)


@pytest.fixture
def app(session_factory, token_service, rate_limiter, hasher):
    application = create_app(
        token_service=token_service,
        rate_limiter=rate_limiter,
        password_hasher=hasher,
    )

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def auth_header(client):
    """Registers a user, logs in, returns {'Authorization': 'Bearer ...'}."""
    creds = {"email": "owner@example.com", "password": "secret1"}
    await client.post("/register", json=creds)
    response = await client.post("/login", json=creds)
    return {"Authorization": f"Bearer {response.json()['token']}"}
