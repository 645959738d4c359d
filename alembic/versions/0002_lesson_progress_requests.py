"""Keep every applied lesson progress request key.

Revision ID: 0002_lesson_progress_requests
Revises: 0001_initial
Create Date: 2026-10-20 00:00:00

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002_lesson_progress_requests"
down_revision: str | None = "0001_initial"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "lesson_progress_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("module_id", sa.String(255), nullable=False),
        sa.Column("lesson_id", sa.String(255), nullable=False),
        sa.Column("request_id", sa.String(128), nullable=False),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "user_id", "module_id", "lesson_id", "request_id", name="uq_lesson_progress_requests_key"
        ),
    )

    # Carry over the one key per lesson the previous schema remembered
    op.execute(
        """
        INSERT INTO lesson_progress_requests (id, user_id, module_id, lesson_id, request_id, applied_at)
        SELECT id, user_id, module_id, lesson_id, last_request_id, updated_at
        FROM lesson_progress
        WHERE last_request_id IS NOT NULL
        """
    )

    with op.batch_alter_table("lesson_progress") as batch_op:
        batch_op.drop_column("last_request_id")


def downgrade() -> None:
    with op.batch_alter_table("lesson_progress") as batch_op:
        batch_op.add_column(sa.Column("last_request_id", sa.String(128), nullable=True))

    op.drop_table("lesson_progress_requests")
