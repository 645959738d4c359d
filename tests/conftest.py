"""Shared fixtures: an in-memory SQLite database per test and an HTTP client over the app."""

import os


# Must be set before coursepath is imported: settings are cached and the engine is built at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTH_PROVIDER"] = "none"
# Use litellm's bundled model cost map instead of fetching it over the network at import time
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from coursepath.config.settings import get_settings  # noqa: E402
from coursepath.database.init import Base  # noqa: E402
from coursepath.database.session import create_session_maker, get_db_session  # noqa: E402
from coursepath.main import app  # noqa: E402


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = create_session_maker(db_engine)
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def user_id() -> str:
    return get_settings().DEFAULT_USER_ID


@pytest_asyncio.fixture
async def client_factory(db_session: AsyncSession) -> AsyncGenerator[Callable[[], Awaitable[AsyncClient]], None]:
    """Build AsyncClients that share the test's database session."""

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = _override_session
    clients: list[AsyncClient] = []

    async def _factory() -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _factory

    for client in clients:
        await client.aclose()
    app.dependency_overrides.pop(get_db_session, None)
