"""Initial schema: courses, lesson progress and learning sessions.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("topic", sa.String(500), nullable=False),
        sa.Column("goal", sa.Text(), nullable=True),
        sa.Column("level", sa.String(20), nullable=False),
        sa.Column("length", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_courses_user_id", "courses", ["user_id"])

    op.create_table(
        "course_blocks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("course_id", sa.Uuid(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("difficulty", sa.String(20), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
    )
    op.create_index("ix_course_blocks_course_order", "course_blocks", ["course_id", "order_index"])

    op.create_table(
        "block_questions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("block_id", sa.Uuid(), sa.ForeignKey("course_blocks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("hint", sa.Text(), nullable=True),
        sa.Column("expected_answer", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
    )
    op.create_index("ix_block_questions_block_id", "block_questions", ["block_id"])

    op.create_table(
        "lesson_progress",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("module_id", sa.String(255), nullable=False),
        sa.Column("lesson_id", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_request_id", sa.String(128), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "module_id", "lesson_id", name="uq_lesson_progress_user_module_lesson"),
        sa.CheckConstraint("time_spent >= 0", name="ck_lesson_progress_time_spent"),
        sa.CheckConstraint("attempts >= 0", name="ck_lesson_progress_attempts"),
    )
    op.create_index("ix_lesson_progress_user_module", "lesson_progress", ["user_id", "module_id"])

    op.create_table(
        "learning_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("course_id", sa.Uuid(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("current_block_id", sa.Uuid(), nullable=False),
        sa.Column("current_question_index", sa.Integer(), nullable=False),
        sa.Column("progress", sa.Float(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("current_question_index >= 0", name="ck_learning_sessions_question_index"),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_learning_sessions_progress"),
    )
    op.create_index("ix_learning_sessions_user_id", "learning_sessions", ["user_id"])
    op.create_index("ix_learning_sessions_course_started", "learning_sessions", ["course_id", "started_at"])

    op.create_table(
        "user_course_progress",
        sa.Column("course_id", sa.Uuid(), sa.ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("completed_blocks", sa.JSON(), nullable=False),
        sa.Column("total_insights", sa.Integer(), nullable=False),
        sa.Column("progress_percentage", sa.Float(), nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_insights >= 0", name="ck_user_course_progress_insights"),
        sa.CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100", name="ck_user_course_progress_percentage"
        ),
    )
    op.create_index("ix_user_course_progress_user_id", "user_course_progress", ["user_id"])

    op.create_table(
        "session_insights",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "session_id", sa.Uuid(), sa.ForeignKey("learning_sessions.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("block_id", sa.Uuid(), nullable=False),
        sa.Column("insight_type", sa.String(50), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_session_insights_session_id", "session_insights", ["session_id"])


def downgrade() -> None:
    op.drop_table("session_insights")
    op.drop_table("user_course_progress")
    op.drop_table("learning_sessions")
    op.drop_table("lesson_progress")
    op.drop_table("block_questions")
    op.drop_table("course_blocks")
    op.drop_table("courses")
