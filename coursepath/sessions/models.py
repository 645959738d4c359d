"""Learning session, per-course progress and insight models."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from coursepath.database.base import Base
from coursepath.database.timestamps import utcnow


class LearningSession(Base):
    """One traversal of a course's blocks.

    A session is active until ``completed_at`` is set, which happens together
    with ``progress`` reaching 100 when it advances past the last block.
    """

    __tablename__ = "learning_sessions"
    __table_args__ = (
        CheckConstraint("current_question_index >= 0", name="ck_learning_sessions_question_index"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_learning_sessions_progress"),
        Index("ix_learning_sessions_course_started", "course_id", "started_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    current_block_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    current_question_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class UserCourseProgress(Base):
    """Aggregate progress for a course across all of its sessions.

    ``completed_blocks`` only ever grows and ``progress_percentage`` is only
    ever raised.
    """

    __tablename__ = "user_course_progress"
    __table_args__ = (
        CheckConstraint("total_insights >= 0", name="ck_user_course_progress_insights"),
        CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100", name="ck_user_course_progress_percentage"
        ),
    )

    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    completed_blocks: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    total_insights: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    last_active_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class SessionInsight(Base):
    """Free-text note a learner recorded against a block."""

    __tablename__ = "session_insights"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("learning_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    block_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    insight_type: Mapped[str] = mapped_column(String(50), nullable=False, default="note")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
