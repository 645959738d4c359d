"""Progress models for tracking lesson completion."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from coursepath.database.base import Base
from coursepath.database.timestamps import utcnow


class LessonStatus(str, Enum):
    """Lesson progress status."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LessonProgress(Base):
    """Per-user progress through a single lesson of a module.

    ``completed_at`` is set exactly when ``status`` is completed. ``time_spent``
    only grows: writes add to it inside the upsert statement.
    """

    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "module_id", "lesson_id", name="uq_lesson_progress_user_module_lesson"),
        CheckConstraint("time_spent >= 0", name="ck_lesson_progress_time_spent"),
        CheckConstraint("attempts >= 0", name="ck_lesson_progress_attempts"),
        Index("ix_lesson_progress_user_module", "user_id", "module_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    module_id: Mapped[str] = mapped_column(String(255), nullable=False)
    lesson_id: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=LessonStatus.NOT_STARTED.value)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # seconds
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @property
    def is_completed(self) -> bool:
        """Check if lesson is completed."""
        return self.status == LessonStatus.COMPLETED.value

    @property
    def is_in_progress(self) -> bool:
        """Check if lesson is in progress."""
        return self.status == LessonStatus.IN_PROGRESS.value

    def __repr__(self) -> str:
        """Return string representation of the progress."""
        return f"<LessonProgress(user={self.user_id}, lesson={self.lesson_id}, status={self.status})>"


class LessonProgressRequest(Base):
    """Idempotency key of a lesson progress write that has been applied.

    A key is stored in the same transaction as the write it belongs to, so a
    replay is recognised no matter how many other writes landed in between.
    """

    __tablename__ = "lesson_progress_requests"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "module_id", "lesson_id", "request_id", name="uq_lesson_progress_requests_key"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    module_id: Mapped[str] = mapped_column(String(255), nullable=False)
    lesson_id: Mapped[str] = mapped_column(String(255), nullable=False)
    request_id: Mapped[str] = mapped_column(String(128), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
