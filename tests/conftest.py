"""Pytest fixtures for testing."""
import os

# Settings are read when app modules are first imported, so the environment
# must be in place before anything below imports them
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("ENVIRONMENT", "development")

from collections.abc import AsyncGenerator  # noqa: E402
from uuid import UUID  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from db.session import enable_sqlite_foreign_keys  # noqa: E402
from models.base import Base  # noqa: E402
from models.user import User  # noqa: E402
from services.url_scraper import UrlMetadata  # noqa: E402


class FakeMetadataFetcher:
    """Metadata fetcher that records requested URLs and never touches the network."""

    def __init__(
        self,
        title: str = "Fetched Title",
        description: str = "Fetched description",
    ) -> None:
        self.title = title
        self.description = description
        self.calls: list[str] = []

    async def fetch(self, url: str) -> UrlMetadata:
        self.calls.append(url)
        return UrlMetadata(title=self.title, description=self.description)


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory SQLite engine per test.

    StaticPool keeps the single in-memory database alive across sessions.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Async session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """A persisted user for service-level tests."""
    user = User(email="owner@example.com", password_hash="not-a-real-hash")
    db_session.add(user)
    await db_session.flush()
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second persisted user, for ownership tests."""
    user = User(email="other@example.com", password_hash="not-a-real-hash")
    db_session.add(user)
    await db_session.flush()
    return user


@pytest.fixture
def fetcher() -> FakeMetadataFetcher:
    """Fake metadata fetcher shared by the app and the test."""
    return FakeMetadataFetcher()


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    fetcher: FakeMetadataFetcher,
) -> AsyncGenerator[AsyncClient]:
    """
    Create a test client backed by the test database and the fake fetcher.

    Each request gets its own session that commits on success and rolls back
    on error, like the real session dependency.
    """
    from api.dependencies import get_metadata_fetcher
    from api.main import app
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_metadata_fetcher] = lambda: fetcher

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def register_user(
    client: AsyncClient,
    email: str = "alice@example.com",
    password: str = "password123",
) -> tuple[dict[str, str], UUID]:
    """Register a user through the API; return auth headers and the user id."""
    response = await client.post(
        "/api/auth/register", json={"email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {"Authorization": f"Bearer {data['token']}"}, UUID(data["user"]["id"])


@pytest.fixture
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    """Authorization headers for a freshly registered user."""
    headers, _ = await register_user(client)
    return headers


@pytest.fixture
async def other_auth_headers(client: AsyncClient) -> dict[str, str]:
    """Authorization headers for a second user."""
    headers, _ = await register_user(client, email="bob@example.com")
    return headers

