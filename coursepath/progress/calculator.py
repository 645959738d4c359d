"""Pure module-progress calculations over lesson progress records.

Nothing here touches the store: callers pass the records they read and the
lesson count from the course catalog.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from coursepath.database.timestamps import ensure_utc_aware
from coursepath.exceptions import ConfigurationError
from coursepath.progress.models import LessonStatus
from coursepath.progress.schemas import ModuleProgress, ProgressLevel


class LessonSnapshot(Protocol):
    """Attributes the calculator needs from a lesson progress record."""

    lesson_id: str
    status: str
    time_spent: int
    attempts: int
    completed_at: datetime | None
    started_at: datetime | None
    updated_at: datetime


_EPOCH = datetime.min


def round_percentage(part: int, whole: int) -> int:
    """Return ``part / whole * 100`` rounded half-up and clamped to [0, 100]."""
    if whole <= 0:
        return 0
    value = (Decimal(part) * 100 / Decimal(whole)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(value)))


def format_duration(total_seconds: int | float) -> str:
    """Render seconds as ``"1h 30m"``, ``"2h"``, ``"45m"`` or ``"0m"``."""
    total_seconds = int(total_seconds)
    if total_seconds <= 0:
        return "0m"

    hours, remainder = divmod(total_seconds, 3600)
    minutes = remainder // 60

    if hours > 0 and minutes > 0:
        return f"{hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h"
    return f"{minutes}m"


def progress_level(completion_percentage: int) -> ProgressLevel:
    """Classify a completion percentage.

    0 is not_started, 1-24 beginner, 25-74 intermediate, 75-99 advanced and
    100 completed.
    """
    if completion_percentage <= 0:
        return ProgressLevel.NOT_STARTED
    if completion_percentage >= 100:
        return ProgressLevel.COMPLETED
    if completion_percentage < 25:
        return ProgressLevel.BEGINNER
    if completion_percentage < 75:
        return ProgressLevel.INTERMEDIATE
    return ProgressLevel.ADVANCED


def _activity_key(lesson: LessonSnapshot) -> tuple[datetime, int, str]:
    updated_at = ensure_utc_aware(lesson.updated_at)
    return (
        updated_at.replace(tzinfo=None) if updated_at else _EPOCH,
        lesson.attempts or 0,
        lesson.lesson_id,
    )


def pick_current_lesson(lessons: Iterable[LessonSnapshot]) -> LessonSnapshot | None:
    """Return the in-progress lesson the learner touched most recently.

    Ties on ``updated_at`` go to the lesson with more attempts, then to the
    greatest lesson id, so the choice is deterministic.
    """
    in_progress = [lesson for lesson in lessons if lesson.status == LessonStatus.IN_PROGRESS.value]
    if not in_progress:
        return None
    return max(in_progress, key=_activity_key)


def average_time_per_completed_lesson(lessons: Iterable[LessonSnapshot]) -> float:
    """Mean time spent on completed lessons (0 when none are completed)."""
    completed = [lesson.time_spent for lesson in lessons if lesson.status == LessonStatus.COMPLETED.value]
    if not completed:
        return 0.0
    return sum(completed) / len(completed)


def calculate_module_progress(module_id: str, lessons: Sequence[LessonSnapshot], total_lessons: int) -> ModuleProgress:
    """Aggregate lesson records into module progress.

    Raises
    ------
        ConfigurationError: If ``total_lessons`` is not positive.
    """
    if total_lessons <= 0:
        msg = "Total lessons must be greater than 0"
        raise ConfigurationError(msg, field="total_lessons")

    completed_lessons = sum(1 for lesson in lessons if lesson.status == LessonStatus.COMPLETED.value)
    in_progress_lessons = sum(1 for lesson in lessons if lesson.status == LessonStatus.IN_PROGRESS.value)
    total_time_spent = sum(lesson.time_spent for lesson in lessons)

    completion_percentage = round_percentage(completed_lessons, total_lessons)
    is_completed = completed_lessons == total_lessons
    level = progress_level(completion_percentage)
    # Rounding (199/200) and over-counting can reach 100% without every lesson done
    if level == ProgressLevel.COMPLETED and not is_completed:
        level = ProgressLevel.ADVANCED
    remaining_lessons = max(total_lessons - completed_lessons, 0)
    average_time = average_time_per_completed_lesson(lessons)
    current = pick_current_lesson(lessons)

    return ModuleProgress(
        module_id=module_id,
        completed_lessons=completed_lessons,
        in_progress_lessons=in_progress_lessons,
        total_lessons=total_lessons,
        completion_percentage=completion_percentage,
        is_completed=is_completed,
        total_time_spent=total_time_spent,
        formatted_time_spent=format_duration(total_time_spent),
        remaining_lessons=remaining_lessons,
        progress_level=level,
        average_time_per_lesson=round(average_time, 2),
        estimated_time_remaining=format_duration(remaining_lessons * average_time),
        current_lesson_id=current.lesson_id if current else None,
    )


def activity_days(lessons: Iterable[LessonSnapshot]) -> set[date]:
    """UTC calendar days on which any of the lessons was started or updated."""
    days = set()
    for lesson in lessons:
        for stamp in (lesson.started_at, lesson.updated_at):
            stamp = ensure_utc_aware(stamp)
            if stamp is not None:
                days.add(stamp.date())
    return days


def activity_streaks(days: Iterable[date], today: date) -> tuple[int, int]:
    """Return ``(current, longest)`` runs of consecutive active days.

    The current run has to include ``today``; a learner who has not been
    active today has no current streak. Days after ``today`` are ignored.
    """
    ordered = sorted(day for day in set(days) if day <= today)
    if not ordered:
        return 0, 0

    longest = run = 1
    for previous, day in zip(ordered, ordered[1:]):
        run = run + 1 if day - previous == timedelta(days=1) else 1
        longest = max(longest, run)

    current = 0
    expected = today
    for day in reversed(ordered):
        if day != expected:
            break
        current += 1
        expected -= timedelta(days=1)

    return current, longest
