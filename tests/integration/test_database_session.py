"""Request-scoped session lifecycle."""

import logging

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from coursepath.database.session import create_session_maker, get_db_session


@pytest.mark.asyncio
async def test_session_maker_keeps_instances_loaded_after_commit(db_engine: AsyncEngine) -> None:
    session_maker = create_session_maker(db_engine)

    assert session_maker.kw["expire_on_commit"] is False


@pytest.mark.asyncio
async def test_failed_request_rolls_back_open_transaction(caplog: pytest.LogCaptureFixture) -> None:
    requests = get_db_session()
    session = await requests.__anext__()
    await session.execute(text("SELECT 1"))
    assert session.in_transaction()

    with caplog.at_level(logging.WARNING, logger="coursepath.database.session"):
        with pytest.raises(RuntimeError):
            await requests.athrow(RuntimeError("handler failed"))

    assert not session.in_transaction()
    assert "Rolling back unfinished transaction after RuntimeError" in caplog.text
