"""Progress store contract.

The progress core depends on this interface only; the SQLAlchemy repository in
``repository.py`` is the production implementation.
"""

from datetime import datetime
from typing import Protocol

from coursepath.progress.models import LessonProgress, LessonStatus


class LessonProgressStore(Protocol):
    """Capability set for per-user lesson progress records."""

    async def get_lesson_progress(self, user_id: str, module_id: str, lesson_id: str) -> LessonProgress | None:
        """Return the record for the natural key, or None when never tracked."""
        ...

    async def list_module_lessons(self, user_id: str, module_id: str) -> list[LessonProgress]:
        """Return every tracked lesson of a module for the user."""
        ...

    async def list_user_lessons(self, user_id: str) -> list[LessonProgress]:
        """Return every tracked lesson of the user across modules."""
        ...

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
        """Insert or update the record in one atomic statement.

        ``time_spent`` is incremented by ``time_spent_delta`` and ``attempts``
        by one. When ``request_id`` was already applied to this lesson the
        stored record is returned unchanged.
        """
        ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
