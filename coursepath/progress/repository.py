"""SQLAlchemy implementation of the lesson progress store."""

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coursepath.database.errors import translate_store_errors
from coursepath.database.timestamps import utcnow
from coursepath.progress.models import LessonProgress, LessonProgressRequest, LessonStatus


logger = logging.getLogger(__name__)

_CONFLICT_KEY = ["user_id", "module_id", "lesson_id"]
_REQUEST_KEY = [*_CONFLICT_KEY, "request_id"]


class SqlAlchemyLessonProgressStore:
    """Lesson progress store backed by the ``lesson_progress`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _insert(self, model):
        dialect = self.session.bind.dialect.name if self.session.bind is not None else "postgresql"
        if dialect == "sqlite":
            return sqlite_insert(model)
        return pg_insert(model)

    async def get_lesson_progress(self, user_id: str, module_id: str, lesson_id: str) -> LessonProgress | None:
        query = select(LessonProgress).where(
            LessonProgress.user_id == user_id,
            LessonProgress.module_id == module_id,
            LessonProgress.lesson_id == lesson_id,
        )
        with translate_store_errors("load lesson progress"):
            result = await self.session.execute(query.execution_options(populate_existing=True))
            return result.scalar_one_or_none()

    async def list_module_lessons(self, user_id: str, module_id: str) -> list[LessonProgress]:
        query = (
            select(LessonProgress)
            .where(LessonProgress.user_id == user_id, LessonProgress.module_id == module_id)
            .order_by(LessonProgress.lesson_id)
        )
        with translate_store_errors("load module progress"):
            result = await self.session.execute(query.execution_options(populate_existing=True))
            return list(result.scalars().all())

    async def list_user_lessons(self, user_id: str) -> list[LessonProgress]:
        query = (
            select(LessonProgress)
            .where(LessonProgress.user_id == user_id)
            .order_by(LessonProgress.module_id, LessonProgress.lesson_id)
        )
        with translate_store_errors("load user progress"):
            result = await self.session.execute(query.execution_options(populate_existing=True))
            return list(result.scalars().all())

    async def claim_request(self, user_id: str, module_id: str, lesson_id: str, request_id: str) -> bool:
        """Record ``request_id`` for the lesson; False when it was applied before."""
        stmt = (
            self._insert(LessonProgressRequest)
            .values(
                [
                    {
                        "id": uuid.uuid4(),
                        "user_id": user_id,
                        "module_id": module_id,
                        "lesson_id": lesson_id,
                        "request_id": request_id,
                        "applied_at": utcnow(),
                    }
                ]
            )
            .on_conflict_do_nothing(index_elements=_REQUEST_KEY)
            .returning(LessonProgressRequest.id)
        )
        with translate_store_errors("record progress request"):
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def upsert_lesson_progress(
        self,
        *,
        user_id: str,
        module_id: str,
        lesson_id: str,
        status: LessonStatus,
        time_spent_delta: int,
        completed_at: datetime | None,
        request_id: str | None,
    ) -> LessonProgress:
        if request_id is not None and not await self.claim_request(user_id, module_id, lesson_id, request_id):
            existing = await self.get_lesson_progress(user_id, module_id, lesson_id)
            if existing is not None:
                logger.info(f"Replayed request {request_id} for {user_id}/{module_id}/{lesson_id}, nothing applied")
                return existing

        now = utcnow()
        stmt = self._insert(LessonProgress).values(
            [
                {
                    "id": uuid.uuid4(),
                    "user_id": user_id,
                    "module_id": module_id,
                    "lesson_id": lesson_id,
                    "status": status.value,
                    "time_spent": time_spent_delta,
                    "attempts": 1,
                    "completed_at": completed_at,
                    "started_at": now,
                    "updated_at": now,
                }
            ]
        )
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=_CONFLICT_KEY,
            set_={
                "status": excluded.status,
                "time_spent": LessonProgress.time_spent + excluded.time_spent,
                "attempts": LessonProgress.attempts + 1,
                "completed_at": excluded.completed_at,
                "updated_at": excluded.updated_at,
            },
        ).returning(LessonProgress)

        with translate_store_errors("save lesson progress"):
            result = await self.session.scalars(stmt, execution_options={"populate_existing": True})
            record = result.one()
        logger.debug(f"Upserted lesson progress {user_id}/{module_id}/{lesson_id} -> {record.status}")
        return record

    async def commit(self) -> None:
        with translate_store_errors("commit lesson progress"):
            await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
