"""Course catalog queries used by the session core.

The catalog owns block ordering and question counts; the session advancer
never derives them on its own.
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursepath.courses.models import BlockQuestion, Course, CourseBlock
from coursepath.database.errors import translate_store_errors
from coursepath.exceptions import NotFoundError


class CourseCatalog:
    """Read access to persisted courses, scoped by owner."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_owned_course(self, user_id: str, course_id: uuid.UUID, *, with_blocks: bool = False) -> Course:
        """Return the course, or raise NotFoundError when it is missing or owned by someone else."""
        query = select(Course).where(Course.id == course_id, Course.user_id == user_id)
        if with_blocks:
            query = query.options(selectinload(Course.blocks).selectinload(CourseBlock.questions)).execution_options(
                populate_existing=True
            )

        with translate_store_errors("load course"):
            result = await self.session.execute(query)
            course = result.scalar_one_or_none()

        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    async def list_block_ids(self, course_id: uuid.UUID) -> list[uuid.UUID]:
        """Block ids of the course in ``order_index`` order."""
        query = (
            select(CourseBlock.id)
            .where(CourseBlock.course_id == course_id)
            .order_by(CourseBlock.order_index, CourseBlock.id)
        )
        with translate_store_errors("load course blocks"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def count_questions(self, block_id: uuid.UUID) -> int:
        query = select(func.count()).select_from(BlockQuestion).where(BlockQuestion.block_id == block_id)
        with translate_store_errors("count block questions"):
            result = await self.session.execute(query)
            return int(result.scalar_one())

    async def get_owned_block(self, user_id: str, course_id: uuid.UUID, block_id: uuid.UUID) -> CourseBlock:
        """Return the block with its ordered questions.

        Raises NotFoundError when the course is not the user's or the block is
        not part of it.
        """
        await self.get_owned_course(user_id, course_id)
        query = (
            select(CourseBlock)
            .where(CourseBlock.id == block_id, CourseBlock.course_id == course_id)
            .options(selectinload(CourseBlock.questions))
            .execution_options(populate_existing=True)
        )
        with translate_store_errors("load course block"):
            result = await self.session.execute(query)
            block = result.scalar_one_or_none()

        if block is None:
            raise NotFoundError("Course block", block_id)
        return block

    async def list_blocks(self, course_id: uuid.UUID) -> list[CourseBlock]:
        query = (
            select(CourseBlock)
            .where(CourseBlock.course_id == course_id)
            .order_by(CourseBlock.order_index, CourseBlock.id)
        )
        with translate_store_errors("load course blocks"):
            result = await self.session.execute(query)
            return list(result.scalars().all())
