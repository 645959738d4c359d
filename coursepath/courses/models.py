"""SQLAlchemy models for courses, their ordered blocks and block questions."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursepath.database.base import Base
from coursepath.database.timestamps import utcnow


class BlockType(str, Enum):
    """Kinds of content blocks a course is sequenced from."""

    INTRODUCTION = "introduction"
    LEARNING = "learning"
    PRACTICE = "practice"
    REFLECTION = "reflection"


class Course(Base):
    """Persisted courses owned by a specific user."""

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    topic: Mapped[str] = mapped_column(String(500), nullable=False)
    goal: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="beginner")
    length: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    blocks: Mapped[list[CourseBlock]] = relationship(
        "CourseBlock",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseBlock.order_index",
    )


class CourseBlock(Base):
    """One step of a course; sessions walk blocks in ``order_index`` order."""

    __tablename__ = "course_blocks"
    __table_args__ = (Index("ix_course_blocks_course_order", "course_id", "order_index"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    block_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(20), nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    course: Mapped[Course] = relationship("Course", back_populates="blocks")
    questions: Mapped[list[BlockQuestion]] = relationship(
        "BlockQuestion",
        back_populates="block",
        cascade="all, delete-orphan",
        order_by="BlockQuestion.order_index",
    )


class BlockQuestion(Base):
    """Question asked inside a learning block."""

    __tablename__ = "block_questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    block_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("course_blocks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    hint: Mapped[str | None] = mapped_column(Text, nullable=True)
    expected_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    block: Mapped[CourseBlock] = relationship("CourseBlock", back_populates="questions")
