"""
Shared fixtures: an in-memory SQLite store, a seeded simulated ad platform,
and an HTTP client wired to the app with those overrides in place.
"""

import os

# Must be set before admonitor is imported (engine and settings are module-level)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_MODE"] = "simulation"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("CRON_SECRET", None)

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from admonitor.ad_platform import SimulatedAdsClient
from admonitor.config import Settings
from admonitor.database import Base, get_db
from admonitor.dependencies import get_credential_store, get_platform_client
from admonitor.services.auth_service import Identity, StaticCredentialStore, create_access_token, hash_password
import admonitor.models  # noqa: F401

TEST_USER = "admin"
TEST_PASSWORD = "correct horse battery"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(app_mode="simulation", database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def platform_client():
    return SimulatedAdsClient(seed=42, delay=0)


@pytest.fixture(scope="session")
def credential_store():
    return StaticCredentialStore({TEST_USER: hash_password(TEST_PASSWORD)})


@pytest.fixture
def auth_headers():
    token = create_access_token(Identity(username=TEST_USER))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def api_client(session_factory, platform_client, credential_store):
    from admonitor.main import app

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_platform_client] = lambda: platform_client
    app.dependency_overrides[get_credential_store] = lambda: credential_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
