"""SQLAlchemy implementation of the session store."""

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coursepath.database.errors import translate_store_errors
from coursepath.database.timestamps import utcnow
from coursepath.sessions.models import LearningSession, SessionInsight, UserCourseProgress


logger = logging.getLogger(__name__)


class SqlAlchemySessionStore:
    """Session store backed by ``learning_sessions``, ``user_course_progress`` and ``session_insights``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_session(self, session_id: uuid.UUID, *, for_update: bool = False) -> LearningSession | None:
        query = select(LearningSession).where(LearningSession.id == session_id)
        if for_update:
            query = query.with_for_update()
        with translate_store_errors("load learning session"):
            result = await self.session.execute(query.execution_options(populate_existing=True))
            return result.scalar_one_or_none()

    async def get_active_session(self, user_id: str, course_id: uuid.UUID) -> LearningSession | None:
        query = (
            select(LearningSession)
            .where(
                LearningSession.user_id == user_id,
                LearningSession.course_id == course_id,
                LearningSession.completed_at.is_(None),
            )
            .order_by(LearningSession.started_at.desc())
            .limit(1)
        )
        with translate_store_errors("load active session"):
            result = await self.session.execute(query.execution_options(populate_existing=True))
            return result.scalar_one_or_none()

    async def create_session(
        self,
        *,
        user_id: str,
        course_id: uuid.UUID,
        block_id: uuid.UUID,
        progress: float = 0.0,
    ) -> LearningSession:
        learning_session = LearningSession(
            user_id=user_id,
            course_id=course_id,
            current_block_id=block_id,
            current_question_index=0,
            progress=progress,
        )
        with translate_store_errors("create learning session"):
            self.session.add(learning_session)
            await self.session.flush()
        return learning_session

    async def get_course_progress(
        self, course_id: uuid.UUID, *, for_update: bool = False
    ) -> UserCourseProgress | None:
        query = select(UserCourseProgress).where(UserCourseProgress.course_id == course_id)
        if for_update:
            query = query.with_for_update()
        with translate_store_errors("load course progress"):
            result = await self.session.execute(query.execution_options(populate_existing=True))
            return result.scalar_one_or_none()

    async def ensure_course_progress(self, user_id: str, course_id: uuid.UUID) -> UserCourseProgress:
        progress = await self.get_course_progress(course_id, for_update=True)
        if progress is not None:
            return progress

        progress = UserCourseProgress(
            course_id=course_id,
            user_id=user_id,
            completed_blocks=[],
            total_insights=0,
            progress_percentage=0.0,
        )
        with translate_store_errors("create course progress"):
            self.session.add(progress)
            await self.session.flush()
        return progress

    async def get_completed_blocks(self, course_id: uuid.UUID) -> set[str]:
        progress = await self.get_course_progress(course_id)
        if progress is None:
            return set()
        return set(progress.completed_blocks or [])

    async def append_completed_block(self, user_id: str, course_id: uuid.UUID, block_id: uuid.UUID) -> None:
        progress = await self.ensure_course_progress(user_id, course_id)

        block = str(block_id)
        completed = list(progress.completed_blocks or [])
        if block not in completed:
            # Reassign so the JSON column is marked dirty
            progress.completed_blocks = [*completed, block]
        progress.last_active_at = utcnow()

        with translate_store_errors("save completed block"):
            await self.session.flush()

    async def raise_progress_percentage(self, course_id: uuid.UUID, percentage: float) -> None:
        stmt = (
            update(UserCourseProgress)
            .where(UserCourseProgress.course_id == course_id)
            .values(
                progress_percentage=case(
                    (UserCourseProgress.progress_percentage < percentage, percentage),
                    else_=UserCourseProgress.progress_percentage,
                )
            )
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors("update course progress"):
            await self.session.execute(stmt)

    async def update_session_pointer(
        self,
        session_id: uuid.UUID,
        *,
        expected_block_id: uuid.UUID,
        next_block_id: uuid.UUID,
        progress: float,
        completed_at: datetime | None = None,
    ) -> bool:
        stmt = (
            update(LearningSession)
            .where(
                LearningSession.id == session_id,
                LearningSession.current_block_id == expected_block_id,
                LearningSession.completed_at.is_(None),
            )
            .values(
                current_block_id=next_block_id,
                current_question_index=0,
                progress=progress,
                completed_at=completed_at,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors("move session pointer"):
            result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def update_question_index(self, session_id: uuid.UUID, *, question_index: int, progress: float) -> None:
        stmt = (
            update(LearningSession)
            .where(LearningSession.id == session_id)
            .values(current_question_index=question_index, progress=progress, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors("update question index"):
            await self.session.execute(stmt)

    async def add_insights(
        self, session_id: uuid.UUID, block_id: uuid.UUID, insights: Sequence[tuple[str, str]]
    ) -> list[SessionInsight]:
        rows = [
            SessionInsight(session_id=session_id, block_id=block_id, insight_type=insight_type, content=content)
            for insight_type, content in insights
        ]
        with translate_store_errors("save insights"):
            self.session.add_all(rows)
            await self.session.flush()
        return rows

    async def list_insights(self, session_id: uuid.UUID) -> list[SessionInsight]:
        query = (
            select(SessionInsight)
            .where(SessionInsight.session_id == session_id)
            .order_by(SessionInsight.created_at, SessionInsight.id)
        )
        with translate_store_errors("load insights"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def list_course_insights(self, course_id: uuid.UUID) -> list[SessionInsight]:
        query = (
            select(SessionInsight)
            .join(LearningSession, LearningSession.id == SessionInsight.session_id)
            .where(LearningSession.course_id == course_id)
            .order_by(SessionInsight.created_at.desc(), SessionInsight.id.desc())
        )
        with translate_store_errors("load course insights"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def count_course_insights(self, course_id: uuid.UUID) -> int:
        query = (
            select(func.count(SessionInsight.id))
            .join(LearningSession, LearningSession.id == SessionInsight.session_id)
            .where(LearningSession.course_id == course_id)
        )
        with translate_store_errors("count insights"):
            result = await self.session.execute(query)
            return int(result.scalar_one())

    async def set_total_insights(self, course_id: uuid.UUID, total: int) -> None:
        stmt = (
            update(UserCourseProgress)
            .where(UserCourseProgress.course_id == course_id)
            .values(total_insights=total, last_active_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors("update insight count"):
            await self.session.execute(stmt)

    async def commit(self) -> None:
        with translate_store_errors("commit session changes"):
            await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
