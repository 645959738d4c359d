"""Business logic for lesson and module progress tracking."""

import logging
from collections import defaultdict
from datetime import date, datetime

from coursepath.database.timestamps import ensure_utc_aware, utcnow
from coursepath.exceptions import ValidationError
from coursepath.progress.calculator import (
    activity_days,
    activity_streaks,
    average_time_per_completed_lesson,
    calculate_module_progress,
    format_duration,
    pick_current_lesson,
)
from coursepath.progress.models import LessonProgress, LessonStatus
from coursepath.progress.protocols import LessonProgressStore
from coursepath.progress.recommender import recommend_next_action, recommend_review, resolve_next_lesson
from coursepath.progress.schemas import (
    LessonProgressRecord,
    ModuleActivitySummary,
    ModuleProgress,
    RecommendationResponse,
    ReviewResponse,
    UserProgressOverview,
)


logger = logging.getLogger(__name__)


def _require_id(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        msg = f"{field} is required"
        raise ValidationError(msg, field=field)
    return str(value).strip()


def _coerce_status(status: LessonStatus | str) -> LessonStatus:
    try:
        return LessonStatus(status)
    except ValueError as e:
        allowed = ", ".join(s.value for s in LessonStatus)
        msg = f"Invalid status '{status}'. Must be one of: {allowed}"
        raise ValidationError(msg, field="status") from e


class ProgressService:
    """Service for lesson progress, module aggregation and recommendations."""

    def __init__(self, store: LessonProgressStore) -> None:
        """Initialize progress service."""
        self.store = store

    async def track_progress(
        self,
        user_id: str,
        module_id: str,
        lesson_id: str,
        status: LessonStatus | str,
        time_spent: int,
        completed_at: datetime | None = None,
        request_id: str | None = None,
    ) -> LessonProgressRecord:
        """Record one lesson interaction.

        Status is last-write-wins, ``time_spent`` is added to the stored total
        and ``attempts`` grows by one. A completed status stamps ``completed_at``
        (the supplied value or now) on every call; any other status clears it.
        Replaying a ``request_id`` already applied to the lesson changes nothing,
        even when other writes happened in between.
        """
        user_id = _require_id(user_id, "user_id")
        module_id = _require_id(module_id, "module_id")
        lesson_id = _require_id(lesson_id, "lesson_id")
        lesson_status = _coerce_status(status)

        if time_spent is None or time_spent < 0:
            msg = "time_spent must be a non-negative number of seconds"
            raise ValidationError(msg, field="time_spent")

        if lesson_status == LessonStatus.COMPLETED:
            stamped_at = ensure_utc_aware(completed_at) or utcnow()
        elif completed_at is not None:
            msg = "completed_at is only allowed when status is completed"
            raise ValidationError(msg, field="completed_at")
        else:
            stamped_at = None

        try:
            record = await self.store.upsert_lesson_progress(
                user_id=user_id,
                module_id=module_id,
                lesson_id=lesson_id,
                status=lesson_status,
                time_spent_delta=int(time_spent),
                completed_at=stamped_at,
                request_id=request_id,
            )
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info(
            f"Tracked lesson {lesson_id} in module {module_id} for user {user_id}: "
            f"{lesson_status.value}, +{time_spent}s (attempt {record.attempts})"
        )
        return LessonProgressRecord.model_validate(record)

    async def get_lesson_progress(self, user_id: str, module_id: str, lesson_id: str) -> LessonProgressRecord | None:
        """Return the lesson record, or None when the lesson was never tracked."""
        record = await self.store.get_lesson_progress(user_id, module_id, lesson_id)
        if record is None:
            return None
        return LessonProgressRecord.model_validate(record)

    async def get_module_progress(self, user_id: str, module_id: str, total_lessons: int) -> ModuleProgress:
        """Aggregate the module's lesson records; ``total_lessons`` comes from the catalog."""
        module_id = _require_id(module_id, "module_id")
        lessons = await self.store.list_module_lessons(user_id, module_id)
        return calculate_module_progress(module_id, lessons, total_lessons)

    async def recommend(
        self,
        user_id: str,
        module_id: str,
        total_lessons: int,
        current_lesson_id: str | None = None,
        next_lesson_id: str | None = None,
        lesson_ids: list[str] | None = None,
    ) -> RecommendationResponse:
        """Recommend the next action in a module.

        When the caller passes the module's ordered ``lesson_ids`` the next and
        first lessons are resolved from it; otherwise ``next_lesson_id`` is
        passed through as given.
        """
        module_id = _require_id(module_id, "module_id")
        lessons = await self.store.list_module_lessons(user_id, module_id)
        module_progress = calculate_module_progress(module_id, lessons, total_lessons)

        first_lesson_id = None
        if lesson_ids:
            first_lesson_id = lesson_ids[0]
            if next_lesson_id is None:
                next_lesson_id = resolve_next_lesson(lessons, lesson_ids)

        recommendation = recommend_next_action(
            module_progress,
            lessons,
            current_lesson_id=current_lesson_id,
            next_lesson_id=next_lesson_id,
            first_lesson_id=first_lesson_id,
        )
        logger.debug(f"Recommended {recommendation.action.value} for user {user_id} in module {module_id}")
        return recommendation

    async def review(self, user_id: str, module_id: str) -> ReviewResponse:
        """List the module's completed lessons for revisiting."""
        lessons = await self.store.list_module_lessons(user_id, module_id)
        return recommend_review(lessons)

    async def get_user_overview(
        self,
        user_id: str,
        module_id: str | None = None,
        total_lessons: int | None = None,
        today: date | None = None,
    ) -> UserProgressOverview:
        """Summarize progress across every module the user has touched.

        ``module_id`` narrows the overview to one module. ``total_lessons`` is
        that module's lesson count from the catalog; with it the module is
        completed once that many lessons are, without it once every tracked
        lesson is. Streaks count UTC days on which a lesson was started or
        updated.

        Raises
        ------
            ValidationError: ``total_lessons`` was given without ``module_id``.
            ConfigurationError: ``total_lessons`` is not positive.
        """
        if total_lessons is not None and module_id is None:
            msg = "total_lessons needs a module_id; lesson counts are per module"
            raise ValidationError(msg, field="total_lessons")

        if module_id is not None:
            module_id = _require_id(module_id, "module_id")
            lessons = await self.store.list_module_lessons(user_id, module_id)
        else:
            lessons = await self.store.list_user_lessons(user_id)

        by_module: dict[str, list[LessonProgress]] = defaultdict(list)
        for lesson in lessons:
            by_module[lesson.module_id].append(lesson)
        if module_id is not None and total_lessons is not None and module_id not in by_module:
            # Validates the count even when nothing was tracked yet
            calculate_module_progress(module_id, [], total_lessons)

        modules = []
        for summary_module_id, module_lessons in by_module.items():
            current = pick_current_lesson(module_lessons)
            last_activity = max((ensure_utc_aware(lesson.updated_at) for lesson in module_lessons), default=None)
            completed_lessons = sum(1 for lesson in module_lessons if lesson.is_completed)
            completion_percentage = None
            if total_lessons is not None:
                module_progress = calculate_module_progress(summary_module_id, module_lessons, total_lessons)
                completion_percentage = module_progress.completion_percentage
                is_completed = module_progress.is_completed
            else:
                is_completed = completed_lessons == len(module_lessons)
            modules.append(
                ModuleActivitySummary(
                    module_id=summary_module_id,
                    tracked_lessons=len(module_lessons),
                    completed_lessons=completed_lessons,
                    in_progress_lessons=sum(1 for lesson in module_lessons if lesson.is_in_progress),
                    total_time_spent=sum(lesson.time_spent for lesson in module_lessons),
                    total_lessons=total_lessons,
                    completion_percentage=completion_percentage,
                    is_completed=is_completed,
                    current_lesson_id=current.lesson_id if current else None,
                    last_activity_at=last_activity,
                )
            )

        modules_completed = sum(1 for module in modules if module.is_completed)
        days = activity_days(lessons)
        current_streak, longest_streak = activity_streaks(days, today or utcnow().date())
        total_time_spent = sum(lesson.time_spent for lesson in lessons)
        return UserProgressOverview(
            user_id=user_id,
            modules=modules,
            modules_started=len(modules),
            modules_completed=modules_completed,
            completion_rate=round(modules_completed / len(modules) * 100, 2) if modules else 0.0,
            lessons_completed=sum(module.completed_lessons for module in modules),
            lessons_in_progress=sum(module.in_progress_lessons for module in modules),
            total_time_spent=total_time_spent,
            formatted_time_spent=format_duration(total_time_spent),
            average_time_per_lesson=round(average_time_per_completed_lesson(lessons), 2),
            days_active=len(days),
            current_streak=current_streak,
            longest_streak=longest_streak,
        )
