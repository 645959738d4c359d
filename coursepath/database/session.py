"""Per-request database sessions.

Services own their transactions: they commit after each unit of work and roll
back on failure. The request dependency only guarantees that a failed request
never leaves pending writes behind on its connection.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from coursepath.database.engine import engine


logger = logging.getLogger(__name__)


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for ``bind``.

    Instances stay loaded after commit; services read back what they wrote
    and use ``populate_existing`` where another statement may have changed a row.
    """
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async_session_maker = create_session_maker(engine)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
        except Exception as e:
            if session.in_transaction():
                logger.warning(f"Rolling back unfinished transaction after {type(e).__name__}")
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
