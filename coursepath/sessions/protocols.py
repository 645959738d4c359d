"""Contracts the session core depends on."""

import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from coursepath.sessions.models import LearningSession, SessionInsight, UserCourseProgress


class SessionStore(Protocol):
    """Capability set for sessions, aggregate course progress and insights."""

    async def get_session(self, session_id: uuid.UUID, *, for_update: bool = False) -> LearningSession | None: ...

    async def get_active_session(self, user_id: str, course_id: uuid.UUID) -> LearningSession | None:
        """Most recently started uncompleted session of the course."""
        ...

    async def create_session(
        self,
        *,
        user_id: str,
        course_id: uuid.UUID,
        block_id: uuid.UUID,
        progress: float = 0.0,
    ) -> LearningSession: ...

    async def get_course_progress(
        self, course_id: uuid.UUID, *, for_update: bool = False
    ) -> UserCourseProgress | None: ...

    async def ensure_course_progress(self, user_id: str, course_id: uuid.UUID) -> UserCourseProgress:
        """Return the course's progress row, creating an empty one when missing."""
        ...

    async def get_completed_blocks(self, course_id: uuid.UUID) -> set[str]: ...

    async def append_completed_block(self, user_id: str, course_id: uuid.UUID, block_id: uuid.UUID) -> None:
        """Add the block to the completed set (no-op when present) and bump ``last_active_at``."""
        ...

    async def raise_progress_percentage(self, course_id: uuid.UUID, percentage: float) -> None:
        """Set the course percentage to ``max(current, percentage)``."""
        ...

    async def update_session_pointer(
        self,
        session_id: uuid.UUID,
        *,
        expected_block_id: uuid.UUID,
        next_block_id: uuid.UUID,
        progress: float,
        completed_at: datetime | None = None,
    ) -> bool:
        """Compare-and-set the current block; False when the session moved or finished meanwhile."""
        ...

    async def update_question_index(self, session_id: uuid.UUID, *, question_index: int, progress: float) -> None: ...

    async def add_insights(
        self, session_id: uuid.UUID, block_id: uuid.UUID, insights: Sequence[tuple[str, str]]
    ) -> list[SessionInsight]: ...

    async def list_insights(self, session_id: uuid.UUID) -> list[SessionInsight]: ...

    async def list_course_insights(self, course_id: uuid.UUID) -> list[SessionInsight]:
        """Insights from every session of the course, newest first."""
        ...

    async def count_course_insights(self, course_id: uuid.UUID) -> int: ...

    async def set_total_insights(self, course_id: uuid.UUID, total: int) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class BlockCatalog(Protocol):
    """Course structure supplied by the catalog."""

    async def list_block_ids(self, course_id: uuid.UUID) -> list[uuid.UUID]: ...

    async def count_questions(self, block_id: uuid.UUID) -> int: ...

    async def get_owned_course(self, user_id: str, course_id: uuid.UUID) -> object:
        """Raise NotFoundError unless the course exists and belongs to the user."""
        ...
