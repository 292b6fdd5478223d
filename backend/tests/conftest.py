import os

# Point settings at SQLite before any interntrack module builds its engine.
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import jwt  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from pydantic import SecretStr  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from interntrack.core.config import settings  # noqa: E402
from interntrack.models import Application  # noqa: E402
from interntrack.models.base import Base  # noqa: E402

# In-memory SQLite shared through one connection for the whole test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Test user IDs (consistent across tests for predictable auth)
TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
USER_B_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
ADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000ad")

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105


def create_test_jwt(
    user_id: uuid.UUID = TEST_USER_ID,
    *,
    role: str | None = None,
    secret: str = TEST_AUTH_SECRET,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT for test authentication.

    Args:
        user_id: User UUID to encode in the sub claim.
        role: Optional role claim ("admin" for admin clients).
        secret: Signing secret (must match settings.auth_secret in tests).
        expires_delta: Time until expiration. Defaults to 1 hour.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "aud": settings.auth_audience,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or timedelta(hours=1)),
        "iat": now,
    }
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, secret, algorithm="HS256")


async def make_application(
    db: AsyncSession,
    user_id: uuid.UUID = TEST_USER_ID,
    **overrides,
) -> Application:
    """Insert an Application directly, bypassing the field whitelist.

    Lets tests pin created_at and other system-managed values.
    """
    values = {
        "company": "Acme",
        "position": "Software Engineering Intern",
        "timeline": [],
        "attachments": [],
        "tags": [],
    }
    values.update(overrides)
    application = Application(user_id=user_id, **values)
    db.add(application)
    await db.flush()
    return application


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a fresh in-memory test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def api_app(db_engine):
    """The FastAPI app wired to the test database with JWT auth enabled."""
    from interntrack.core.database import get_db
    from interntrack.main import app

    test_session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    original_auth_enabled = settings.auth_enabled
    original_auth_secret = settings.auth_secret
    settings.auth_enabled = True
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)

    yield app

    settings.auth_enabled = original_auth_enabled
    settings.auth_secret = original_auth_secret
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as TEST_USER_ID through the session cookie."""
    transport = ASGITransport(app=api_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        cookies={settings.auth_cookie_name: create_test_jwt(TEST_USER_ID)},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def user_b_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as USER_B_ID through a bearer header."""
    transport = ASGITransport(app=api_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {create_test_jwt(USER_B_ID)}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as ADMIN_USER_ID with the admin role claim."""
    token = create_test_jwt(ADMIN_USER_ID, role="admin")
    transport = ASGITransport(app=api_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def unauthenticated_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Client without credentials, for 401 checks."""
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
