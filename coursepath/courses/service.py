"""Business logic for persisting and reading courses."""

import logging
import uuid

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from coursepath.courses.catalog import CourseCatalog
from coursepath.courses.generator import CourseGenerator
from coursepath.courses.models import BlockQuestion, Course, CourseBlock
from coursepath.courses.schemas import BlockResponse, BlockUpdate, CourseDraft, CourseResponse, GenerateCourseRequest
from coursepath.database.errors import translate_store_errors
from coursepath.database.timestamps import utcnow
from coursepath.exceptions import ValidationError
from coursepath.sessions.models import LearningSession


logger = logging.getLogger(__name__)


class CourseService:
    """Service for creating courses from drafts and reading them back."""

    def __init__(self, session: AsyncSession, generator: CourseGenerator | None = None) -> None:
        self.session = session
        self.catalog = CourseCatalog(session)
        self.generator = generator or CourseGenerator()

    async def create_course(self, user_id: str, draft: CourseDraft) -> CourseResponse:
        """Persist a course draft; blocks are ordered as they appear in the draft."""
        course = Course(
            user_id=user_id,
            title=draft.title,
            topic=draft.topic,
            goal=draft.goal,
            level=draft.level.value,
            length=draft.length.value,
        )
        course.blocks = [
            CourseBlock(
                block_type=block.block_type.value,
                title=block.title,
                content=block.content,
                difficulty=block.difficulty,
                order_index=order_index,
                questions=[
                    BlockQuestion(
                        text=question.text,
                        hint=question.hint,
                        expected_answer=question.expected_answer,
                        order_index=question_index,
                    )
                    for question_index, question in enumerate(block.questions)
                ],
            )
            for order_index, block in enumerate(draft.blocks)
        ]

        try:
            with translate_store_errors("save course"):
                self.session.add(course)
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Created course {course.id} '{course.title}' with {len(course.blocks)} blocks for user {user_id}")
        return await self.get_course(user_id, course.id)

    async def generate_course(self, user_id: str, request: GenerateCourseRequest) -> CourseResponse:
        """Draft a course with the LLM and persist it."""
        draft = await self.generator.draft_course(
            request.topic,
            level=request.level,
            length=request.length,
            goal=request.goal,
        )
        return await self.create_course(user_id, draft)

    async def get_course(self, user_id: str, course_id: uuid.UUID) -> CourseResponse:
        """Return the course with its ordered blocks and questions."""
        course = await self.catalog.get_owned_course(user_id, course_id, with_blocks=True)
        return CourseResponse.model_validate(course)

    async def get_block(self, user_id: str, course_id: uuid.UUID, block_id: uuid.UUID) -> BlockResponse:
        block = await self.catalog.get_owned_block(user_id, course_id, block_id)
        return BlockResponse.model_validate(block)

    async def update_block(
        self, user_id: str, course_id: uuid.UUID, block_id: uuid.UUID, changes: BlockUpdate
    ) -> BlockResponse:
        """Apply the title, content and difficulty fields present in ``changes``."""
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            msg = "No fields to update; send title, content or difficulty"
            raise ValidationError(msg, field="block")
        if "title" in fields and fields["title"] is None:
            msg = "Block title cannot be empty"
            raise ValidationError(msg, field="title")

        block = await self.catalog.get_owned_block(user_id, course_id, block_id)
        try:
            with translate_store_errors("update course block"):
                for name, value in fields.items():
                    setattr(block, name, value)
                await self._touch_course(course_id)
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Updated block {block_id} of course {course_id}: {', '.join(sorted(fields))}")
        return await self.get_block(user_id, course_id, block_id)

    async def delete_block(self, user_id: str, course_id: uuid.UUID, block_id: uuid.UUID) -> None:
        """Delete a block and close the gap it leaves in the ordering.

        Unfinished sessions parked on the block move to the block that takes
        its place, or to the new last block when it was the last one. When no
        block is left their pointer stays dangling and advancing them fails
        with a configuration error.
        """
        block = await self.catalog.get_owned_block(user_id, course_id, block_id)
        try:
            with translate_store_errors("delete course block"):
                position = block.order_index
                await self.session.delete(block)
                await self.session.flush()

                remaining = await self.catalog.list_blocks(course_id)
                for order_index, sibling in enumerate(remaining):
                    sibling.order_index = order_index

                if remaining:
                    successor = remaining[min(position, len(remaining) - 1)]
                    await self.session.execute(
                        update(LearningSession)
                        .where(
                            LearningSession.course_id == course_id,
                            LearningSession.current_block_id == block_id,
                            LearningSession.completed_at.is_(None),
                        )
                        .values(current_block_id=successor.id, current_question_index=0, updated_at=utcnow())
                        .execution_options(synchronize_session=False)
                    )
                await self._touch_course(course_id)
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Deleted block {block_id} from course {course_id}; {len(remaining)} blocks remain")

    async def _touch_course(self, course_id: uuid.UUID) -> None:
        await self.session.execute(
            update(Course)
            .where(Course.id == course_id)
            .values(updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
