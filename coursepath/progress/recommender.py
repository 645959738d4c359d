"""Next-action and review recommendations for a module.

Pure functions over already-loaded progress; lesson ordering comes from the
catalog and is passed in by the caller.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from coursepath.database.timestamps import ensure_utc_aware
from coursepath.progress.calculator import LessonSnapshot, pick_current_lesson
from coursepath.progress.models import LessonStatus
from coursepath.progress.schemas import ModuleProgress, NextAction, RecommendationResponse, ReviewResponse


def recommend_next_action(
    module_progress: ModuleProgress,
    lessons: Sequence[LessonSnapshot],
    current_lesson_id: str | None = None,
    next_lesson_id: str | None = None,
    first_lesson_id: str | None = None,
) -> RecommendationResponse:
    """Decide what the learner should do next in the module.

    First match wins:

    1. the module is completed: ``module_completed``
    2. a lesson is in progress: ``continue_current_lesson``. An explicit
       ``current_lesson_id`` is used when it is tracked in progress, otherwise
       the most recently updated in-progress lesson.
    3. some lessons are completed: ``start_next_lesson`` with the caller's
       ``next_lesson_id``
    4. nothing completed yet: ``start_next_lesson`` with ``first_lesson_id``
    """
    if module_progress.is_completed:
        return RecommendationResponse(action=NextAction.MODULE_COMPLETED, module_progress=module_progress)

    current = None
    if current_lesson_id is not None:
        current = next(
            (
                lesson
                for lesson in lessons
                if lesson.lesson_id == current_lesson_id and lesson.status == LessonStatus.IN_PROGRESS.value
            ),
            None,
        )
    if current is None:
        current = pick_current_lesson(lessons)

    if current is not None:
        return RecommendationResponse(
            action=NextAction.CONTINUE_CURRENT_LESSON,
            current_lesson_id=current.lesson_id,
            module_progress=module_progress,
        )

    # Counted, not the rounded percentage: 1 of 300 lessons rounds to 0%
    if module_progress.completed_lessons > 0:
        return RecommendationResponse(
            action=NextAction.START_NEXT_LESSON,
            next_lesson_id=next_lesson_id,
            module_progress=module_progress,
        )

    return RecommendationResponse(
        action=NextAction.START_NEXT_LESSON,
        next_lesson_id=first_lesson_id,
        module_progress=module_progress,
    )


def _completed_key(lesson: LessonSnapshot) -> tuple[datetime, str]:
    completed_at = ensure_utc_aware(lesson.completed_at)
    return (completed_at.replace(tzinfo=None) if completed_at else datetime.min, lesson.lesson_id)


def recommend_review(lessons: Iterable[LessonSnapshot]) -> ReviewResponse:
    """List completed lessons worth revisiting, most recently completed first."""
    completed = [lesson for lesson in lessons if lesson.status == LessonStatus.COMPLETED.value]
    completed.sort(key=_completed_key, reverse=True)
    return ReviewResponse(action=NextAction.REVIEW_COMPLETED, lesson_ids=[lesson.lesson_id for lesson in completed])


def resolve_next_lesson(lessons: Iterable[LessonSnapshot], ordered_lesson_ids: Sequence[str]) -> str | None:
    """Return the first catalog lesson the learner has not started yet."""
    started = {lesson.lesson_id for lesson in lessons if lesson.status != LessonStatus.NOT_STARTED.value}
    return next((lesson_id for lesson_id in ordered_lesson_ids if lesson_id not in started), None)
