"""Course API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Response, status

from coursepath.auth import CurrentAuth
from coursepath.sessions.router import build_session_service
from coursepath.sessions.schemas import CourseProgressResponse, LearningSessionResponse, SessionInsightResponse

from .schemas import BlockResponse, BlockUpdate, CourseDraft, CourseResponse, GenerateCourseRequest
from .service import CourseService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/courses", tags=["courses"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(draft: CourseDraft, auth: CurrentAuth) -> CourseResponse:
    """Persist a course from a ready draft."""
    return await CourseService(auth.session).create_course(auth.user_id, draft)


@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_course(request: GenerateCourseRequest, auth: CurrentAuth) -> CourseResponse:
    """Draft a course with the AI and persist it."""
    logger.info(f"Generating course on '{request.topic}' for user {auth.user_id}")
    return await CourseService(auth.session).generate_course(auth.user_id, request)


@router.get("/{course_id}")
async def get_course(course_id: UUID, auth: CurrentAuth) -> CourseResponse:
    """Get a course with its ordered blocks."""
    return await CourseService(auth.session).get_course(auth.user_id, course_id)


@router.post("/{course_id}/start", status_code=status.HTTP_201_CREATED)
async def start_course(course_id: UUID, auth: CurrentAuth) -> LearningSessionResponse:
    """Start a new session at the first block."""
    return await build_session_service(auth).start_session(auth.user_id, course_id)


@router.post("/{course_id}/continue")
async def continue_course(course_id: UUID, auth: CurrentAuth) -> LearningSessionResponse:
    """Resume the active session or open one at the first uncompleted block."""
    return await build_session_service(auth).continue_course(auth.user_id, course_id)


@router.get("/{course_id}/progress", response_model=None)
async def get_course_progress(course_id: UUID, auth: CurrentAuth) -> CourseProgressResponse | Response:
    """Get aggregate progress for the course; 204 before the first session."""
    progress = await build_session_service(auth).get_course_progress(auth.user_id, course_id)
    if progress is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return progress


@router.get("/{course_id}/insights")
async def list_course_insights(course_id: UUID, auth: CurrentAuth) -> list[SessionInsightResponse]:
    """List insights from every session of the course, newest first."""
    return await build_session_service(auth).list_course_insights(auth.user_id, course_id)


@router.get("/{course_id}/blocks/{block_id}")
async def get_block(course_id: UUID, block_id: UUID, auth: CurrentAuth) -> BlockResponse:
    """Get a block with its ordered questions."""
    return await CourseService(auth.session).get_block(auth.user_id, course_id, block_id)


@router.patch("/{course_id}/blocks/{block_id}")
async def update_block(course_id: UUID, block_id: UUID, changes: BlockUpdate, auth: CurrentAuth) -> BlockResponse:
    """Edit a block's title, content or difficulty."""
    return await CourseService(auth.session).update_block(auth.user_id, course_id, block_id, changes)


@router.delete("/{course_id}/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(course_id: UUID, block_id: UUID, auth: CurrentAuth) -> None:
    """Delete a block and renumber the ones after it."""
    await CourseService(auth.session).delete_block(auth.user_id, course_id, block_id)
