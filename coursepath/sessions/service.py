"""Session sequencing: advancing through blocks, answering questions, resuming courses."""

import logging
import uuid
from collections.abc import Sequence

from coursepath.database.timestamps import utcnow
from coursepath.exceptions import (
    ConcurrentUpdateError,
    ConfigurationError,
    CourseAlreadyCompletedError,
    NotFoundError,
    SessionCompletedError,
)
from coursepath.progress.calculator import round_percentage
from coursepath.sessions.models import LearningSession
from coursepath.sessions.protocols import BlockCatalog, SessionStore
from coursepath.sessions.schemas import (
    AdvanceResult,
    CourseProgressResponse,
    InsightItem,
    InsightsRecorded,
    LearningSessionResponse,
    SessionInsightResponse,
)


logger = logging.getLogger(__name__)


class SessionService:
    """Moves learning sessions through a course's ordered blocks.

    Each mutating call re-reads the session under a row lock and applies all
    of its writes in a single transaction.
    """

    def __init__(self, store: SessionStore, catalog: BlockCatalog) -> None:
        self.store = store
        self.catalog = catalog

    async def _load_owned_session(
        self, user_id: str, session_id: uuid.UUID, *, for_update: bool = False
    ) -> LearningSession:
        learning_session = await self.store.get_session(session_id, for_update=for_update)
        if learning_session is None or learning_session.user_id != user_id:
            raise NotFoundError("Learning session", session_id)
        return learning_session

    async def _ordered_blocks(self, course_id: uuid.UUID) -> list[uuid.UUID]:
        block_ids = await self.catalog.list_block_ids(course_id)
        if not block_ids:
            msg = f"Course {course_id} has no blocks"
            raise ConfigurationError(msg, field="blocks")
        return block_ids

    @staticmethod
    def _block_position(block_ids: Sequence[uuid.UUID], learning_session: LearningSession) -> int:
        try:
            return block_ids.index(learning_session.current_block_id)
        except ValueError:
            msg = (
                f"Session {learning_session.id} points at block {learning_session.current_block_id} "
                f"which is not part of course {learning_session.course_id}"
            )
            raise ConfigurationError(msg, field="current_block_id") from None

    async def advance(self, user_id: str, session_id: uuid.UUID) -> AdvanceResult:
        """Complete the current block and move to the next one, or finish the session.

        Raises
        ------
            NotFoundError: The session does not exist for this user.
            SessionCompletedError: The session already finished.
            ConfigurationError: The course has no blocks or lost the current block.
            ConcurrentUpdateError: Another request advanced the session first.
        """
        try:
            learning_session = await self._load_owned_session(user_id, session_id, for_update=True)
            if learning_session.is_completed:
                raise SessionCompletedError(session_id)

            course_id = learning_session.course_id
            current_block_id = learning_session.current_block_id
            block_ids = await self._ordered_blocks(course_id)
            index = self._block_position(block_ids, learning_session)

            await self.store.append_completed_block(user_id, course_id, current_block_id)

            if index + 1 < len(block_ids):
                next_block_id = block_ids[index + 1]
                progress = float(round_percentage(index + 1, len(block_ids)))
                moved = await self.store.update_session_pointer(
                    session_id,
                    expected_block_id=current_block_id,
                    next_block_id=next_block_id,
                    progress=progress,
                )
                if not moved:
                    raise ConcurrentUpdateError(session_id)
                await self.store.raise_progress_percentage(course_id, progress)
                result = AdvanceResult(completed=False, next_block_id=next_block_id, progress=progress)
            else:
                moved = await self.store.update_session_pointer(
                    session_id,
                    expected_block_id=current_block_id,
                    next_block_id=current_block_id,
                    progress=100.0,
                    completed_at=utcnow(),
                )
                if not moved:
                    raise ConcurrentUpdateError(session_id)
                await self.store.raise_progress_percentage(course_id, 100.0)
                result = AdvanceResult(completed=True, course_id=course_id, progress=100.0)

            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        if result.completed:
            logger.info(f"Session {session_id} completed course {course_id}")
        else:
            logger.info(
                f"Session {session_id} advanced to block {index + 2}/{len(block_ids)} ({result.progress:.0f}%)"
            )
        return result

    async def submit_answer(self, user_id: str, session_id: uuid.UUID, answer: str) -> None:
        """Move to the next question of the current block.

        The index stops at the question count, which marks the block as
        exhausted; leaving the block is up to ``advance``. Progress is
        recomputed at block granularity. The answer itself is not graded here.
        """
        try:
            learning_session = await self._load_owned_session(user_id, session_id, for_update=True)
            if learning_session.is_completed:
                raise SessionCompletedError(session_id)

            block_ids = await self._ordered_blocks(learning_session.course_id)
            index = self._block_position(block_ids, learning_session)
            question_count = await self.catalog.count_questions(learning_session.current_block_id)

            next_index = learning_session.current_question_index + 1
            question_index = next_index if next_index < question_count else question_count
            progress = float(round_percentage(index, len(block_ids)))

            await self.store.update_question_index(session_id, question_index=question_index, progress=progress)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.debug(
            f"Session {session_id} answered ({len(answer)} chars), question {question_index}/{question_count}"
        )

    async def start_session(self, user_id: str, course_id: uuid.UUID) -> LearningSessionResponse:
        """Open a new session at the course's first block."""
        await self.catalog.get_owned_course(user_id, course_id)
        block_ids = await self._ordered_blocks(course_id)

        try:
            await self.store.ensure_course_progress(user_id, course_id)
            learning_session = await self.store.create_session(
                user_id=user_id, course_id=course_id, block_id=block_ids[0]
            )
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info(f"Started session {learning_session.id} for course {course_id}")
        return LearningSessionResponse.model_validate(learning_session)

    async def continue_course(self, user_id: str, course_id: uuid.UUID) -> LearningSessionResponse:
        """Resume the active session or open one at the first uncompleted block.

        Raises
        ------
            CourseAlreadyCompletedError: Every block of the course is completed.
        """
        await self.catalog.get_owned_course(user_id, course_id)

        active = await self.store.get_active_session(user_id, course_id)
        if active is not None:
            return await self.get_session(user_id, active.id)

        block_ids = await self._ordered_blocks(course_id)
        completed = await self.store.get_completed_blocks(course_id)
        next_block_id = next((block_id for block_id in block_ids if str(block_id) not in completed), None)
        if next_block_id is None:
            raise CourseAlreadyCompletedError(course_id)

        try:
            progress = await self.store.ensure_course_progress(user_id, course_id)
            learning_session = await self.store.create_session(
                user_id=user_id,
                course_id=course_id,
                block_id=next_block_id,
                progress=progress.progress_percentage,
            )
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info(f"Resumed course {course_id} with new session {learning_session.id} at block {next_block_id}")
        return LearningSessionResponse.model_validate(learning_session)

    async def get_session(self, user_id: str, session_id: uuid.UUID) -> LearningSessionResponse:
        """Return the session with the insights recorded in it."""
        learning_session = await self._load_owned_session(user_id, session_id)
        insights = await self.store.list_insights(session_id)

        response = LearningSessionResponse.model_validate(learning_session)
        response.insights = [SessionInsightResponse.model_validate(insight) for insight in insights]
        return response

    async def record_insights(
        self, user_id: str, session_id: uuid.UUID, insights: Sequence[InsightItem]
    ) -> InsightsRecorded:
        """Store insights against the current block and refresh the course's insight count."""
        try:
            learning_session = await self._load_owned_session(user_id, session_id)
            course_id = learning_session.course_id

            await self.store.add_insights(
                session_id,
                learning_session.current_block_id,
                [(insight.type, insight.content) for insight in insights],
            )
            await self.store.ensure_course_progress(user_id, course_id)
            total = await self.store.count_course_insights(course_id)
            await self.store.set_total_insights(course_id, total)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info(f"Recorded {len(insights)} insights in session {session_id}; course {course_id} has {total}")
        return InsightsRecorded(recorded=len(insights), total_insights=total)

    async def list_course_insights(self, user_id: str, course_id: uuid.UUID) -> list[SessionInsightResponse]:
        """Every insight recorded in any session of the course, newest first."""
        await self.catalog.get_owned_course(user_id, course_id)
        insights = await self.store.list_course_insights(course_id)
        return [SessionInsightResponse.model_validate(insight) for insight in insights]

    async def get_course_progress(self, user_id: str, course_id: uuid.UUID) -> CourseProgressResponse | None:
        """Return aggregate progress for the course, or None when no session was ever started."""
        await self.catalog.get_owned_course(user_id, course_id)
        progress = await self.store.get_course_progress(course_id)
        if progress is None:
            return None
        return CourseProgressResponse.model_validate(progress)
