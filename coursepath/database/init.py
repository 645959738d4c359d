"""Database initialization - creates tables for local and single-node setups.

Production schemas are owned by Alembic; this only runs ``create_all`` which is a
no-op for tables that already exist.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

# Import all models to register them with Base metadata
from coursepath.courses.models import *  # noqa: F403
from coursepath.progress.models import *  # noqa: F403
from coursepath.sessions.models import *  # noqa: F403

from .base import Base


logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine) -> None:
    """Create all tables from the registered models."""
    async with db_engine.begin() as conn:
        logger.info("Creating database tables from models...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("All tables created successfully")
