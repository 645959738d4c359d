"""Block editing and course-wide insights."""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from coursepath.courses.catalog import CourseCatalog
from coursepath.courses.models import BlockType
from coursepath.courses.schemas import BlockDraft, BlockUpdate, CourseDraft, QuestionDraft
from coursepath.courses.service import CourseService
from coursepath.exceptions import ConfigurationError, NotFoundError, ValidationError
from coursepath.sessions.repository import SqlAlchemySessionStore
from coursepath.sessions.schemas import InsightItem
from coursepath.sessions.service import SessionService


def _draft(block_count: int) -> CourseDraft:
    return CourseDraft(
        title="Linear algebra",
        topic="vectors",
        blocks=[
            BlockDraft(
                block_type=BlockType.LEARNING,
                title=f"Block {i + 1}",
                difficulty="easy",
                questions=[QuestionDraft(text=f"Q{i + 1}.{j + 1}") for j in range(2)],
            )
            for i in range(block_count)
        ],
    )


@pytest_asyncio.fixture
async def courses(db_session: AsyncSession) -> CourseService:
    return CourseService(db_session)


@pytest_asyncio.fixture
async def sessions(db_session: AsyncSession) -> SessionService:
    return SessionService(SqlAlchemySessionStore(db_session), CourseCatalog(db_session))


@pytest.mark.asyncio
async def test_get_block_returns_ordered_questions(courses: CourseService, user_id: str) -> None:
    course = await courses.create_course(user_id, _draft(2))

    block = await courses.get_block(user_id, course.id, course.blocks[1].id)

    assert block.title == "Block 2"
    assert [question.text for question in block.questions] == ["Q2.1", "Q2.2"]
    assert [question.order_index for question in block.questions] == [0, 1]


@pytest.mark.asyncio
async def test_block_of_another_course_or_user_is_not_found(courses: CourseService, user_id: str) -> None:
    course = await courses.create_course(user_id, _draft(1))
    other = await courses.create_course(user_id, _draft(1))

    with pytest.raises(NotFoundError):
        await courses.get_block(user_id, other.id, course.blocks[0].id)
    with pytest.raises(NotFoundError):
        await courses.get_block("someone-else", course.id, course.blocks[0].id)
    with pytest.raises(NotFoundError):
        await courses.delete_block(user_id, course.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_update_block_changes_only_supplied_fields(courses: CourseService, user_id: str) -> None:
    course = await courses.create_course(user_id, _draft(2))
    block_id = course.blocks[0].id

    updated = await courses.update_block(user_id, course.id, block_id, BlockUpdate(title="Vectors", difficulty="hard"))

    assert updated.title == "Vectors"
    assert updated.difficulty == "hard"
    assert updated.content is None
    assert updated.order_index == 0
    assert len(updated.questions) == 2


@pytest.mark.asyncio
async def test_update_block_without_fields_is_rejected(courses: CourseService, user_id: str) -> None:
    course = await courses.create_course(user_id, _draft(1))

    with pytest.raises(ValidationError) as exc_info:
        await courses.update_block(user_id, course.id, course.blocks[0].id, BlockUpdate())
    assert exc_info.value.field == "block"

    with pytest.raises(ValidationError) as exc_info:
        await courses.update_block(user_id, course.id, course.blocks[0].id, BlockUpdate(title=None))
    assert exc_info.value.field == "title"


@pytest.mark.asyncio
async def test_delete_block_renumbers_remaining_blocks(courses: CourseService, user_id: str) -> None:
    course = await courses.create_course(user_id, _draft(4))
    kept = [course.blocks[0].id, course.blocks[2].id, course.blocks[3].id]

    await courses.delete_block(user_id, course.id, course.blocks[1].id)

    refreshed = await courses.get_course(user_id, course.id)
    assert [block.id for block in refreshed.blocks] == kept
    assert [block.order_index for block in refreshed.blocks] == [0, 1, 2]


@pytest.mark.asyncio
async def test_session_on_deleted_block_moves_to_its_successor(
    courses: CourseService, sessions: SessionService, user_id: str
) -> None:
    course = await courses.create_course(user_id, _draft(3))
    blocks = [block.id for block in course.blocks]
    started = await sessions.start_session(user_id, course.id)
    await sessions.advance(user_id, started.id)
    await sessions.submit_answer(user_id, started.id, "an answer")

    await courses.delete_block(user_id, course.id, blocks[1])

    moved = await sessions.get_session(user_id, started.id)
    assert moved.current_block_id == blocks[2]
    assert moved.current_question_index == 0

    finished = await sessions.advance(user_id, started.id)
    assert finished.completed is True


@pytest.mark.asyncio
async def test_session_on_deleted_last_block_moves_back(
    courses: CourseService, sessions: SessionService, user_id: str
) -> None:
    course = await courses.create_course(user_id, _draft(2))
    blocks = [block.id for block in course.blocks]
    started = await sessions.start_session(user_id, course.id)
    await sessions.advance(user_id, started.id)

    await courses.delete_block(user_id, course.id, blocks[1])

    moved = await sessions.get_session(user_id, started.id)
    assert moved.current_block_id == blocks[0]


@pytest.mark.asyncio
async def test_deleting_every_block_leaves_session_unadvanceable(
    courses: CourseService, sessions: SessionService, user_id: str
) -> None:
    course = await courses.create_course(user_id, _draft(1))
    started = await sessions.start_session(user_id, course.id)

    await courses.delete_block(user_id, course.id, course.blocks[0].id)

    with pytest.raises(ConfigurationError):
        await sessions.advance(user_id, started.id)

    unchanged = await sessions.get_session(user_id, started.id)
    assert unchanged.completed_at is None
    assert unchanged.progress == 0


@pytest.mark.asyncio
async def test_course_insights_span_sessions_newest_first(
    courses: CourseService, sessions: SessionService, user_id: str
) -> None:
    course = await courses.create_course(user_id, _draft(2))
    first = await sessions.start_session(user_id, course.id)
    await sessions.record_insights(user_id, first.id, [InsightItem(content="Vectors have direction")])
    second = await sessions.start_session(user_id, course.id)
    await sessions.record_insights(user_id, second.id, [InsightItem(type="question", content="What is a basis?")])

    insights = await sessions.list_course_insights(user_id, course.id)

    assert {insight.content for insight in insights} == {"Vectors have direction", "What is a basis?"}
    assert {insight.session_id for insight in insights} == {first.id, second.id}
    stamps = [insight.created_at for insight in insights]
    assert stamps == sorted(stamps, reverse=True)


@pytest.mark.asyncio
async def test_course_insights_require_ownership(
    courses: CourseService, sessions: SessionService, user_id: str
) -> None:
    course = await courses.create_course(user_id, _draft(1))

    assert await sessions.list_course_insights(user_id, course.id) == []
    with pytest.raises(NotFoundError):
        await sessions.list_course_insights("someone-else", course.id)
