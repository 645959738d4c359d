"""Lesson and module progress API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from coursepath.auth import CurrentAuth

from .repository import SqlAlchemyLessonProgressStore
from .schemas import (
    LessonProgressRecord,
    ModuleProgress,
    RecommendationRequest,
    RecommendationResponse,
    ReviewResponse,
    TrackProgressRequest,
    UserProgressOverview,
)
from .service import ProgressService


router = APIRouter(prefix="/api/v1/progress", tags=["progress"])


def _service(auth: CurrentAuth) -> ProgressService:
    return ProgressService(SqlAlchemyLessonProgressStore(auth.session))


@router.post("/track")
async def track_progress(request: TrackProgressRequest, auth: CurrentAuth) -> LessonProgressRecord:
    """Record a lesson interaction and return the updated lesson record."""
    return await _service(auth).track_progress(
        auth.user_id,
        request.module_id,
        request.lesson_id,
        request.status,
        request.time_spent,
        completed_at=request.completed_at,
        request_id=request.request_id,
    )


@router.get("/lessons/{module_id}/{lesson_id}", response_model=None)
async def get_lesson_progress(
    module_id: str,
    lesson_id: str,
    auth: CurrentAuth,
) -> LessonProgressRecord | Response:
    """Get a lesson record; 204 when the lesson has not been tracked yet."""
    record = await _service(auth).get_lesson_progress(auth.user_id, module_id, lesson_id)
    if record is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return record


@router.get("/modules/{module_id}")
async def get_module_progress(
    module_id: str,
    total_lessons: Annotated[int, Query(description="Lesson count from the course catalog")],
    auth: CurrentAuth,
) -> ModuleProgress:
    """Get aggregated progress for a module."""
    return await _service(auth).get_module_progress(auth.user_id, module_id, total_lessons)


@router.post("/modules/{module_id}/recommendation")
async def recommend_next_action(
    module_id: str,
    request: RecommendationRequest,
    auth: CurrentAuth,
) -> RecommendationResponse:
    """Recommend what the learner should do next in a module."""
    return await _service(auth).recommend(
        auth.user_id,
        module_id,
        request.total_lessons,
        current_lesson_id=request.current_lesson_id,
        next_lesson_id=request.next_lesson_id,
        lesson_ids=request.lesson_ids,
    )


@router.get("/modules/{module_id}/review")
async def review_completed(module_id: str, auth: CurrentAuth) -> ReviewResponse:
    """List completed lessons of a module, most recent first."""
    return await _service(auth).review(auth.user_id, module_id)


@router.get("/overview")
async def get_user_overview(
    auth: CurrentAuth,
    module_id: Annotated[str | None, Query(description="Limit the overview to one module")] = None,
    total_lessons: Annotated[int | None, Query(description="Lesson count of that module")] = None,
) -> UserProgressOverview:
    """Get the user's progress across all tracked modules, with activity streaks."""
    return await _service(auth).get_user_overview(auth.user_id, module_id=module_id, total_lessons=total_lessons)
