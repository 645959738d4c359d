from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from coursepath.config.settings import get_settings


def create_app_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine for the configured database.

    - PostgreSQL (asyncpg): pooled connections with pre-ping.
    - SQLite (aiosqlite): used for local runs and tests, no pool tuning.
    """
    settings = get_settings()
    url = database_url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)

    return create_async_engine(
        url,
        echo=False,  # Set True for SQL debugging
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        pool_use_lifo=True,  # Reuse hot connections
    )


engine: AsyncEngine = create_app_engine()
