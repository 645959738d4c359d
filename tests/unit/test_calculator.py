"""Tests for the pure module progress calculations."""

from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace

import pytest

from coursepath.exceptions import ConfigurationError, ErrorKind, ValidationError
from coursepath.progress.calculator import (
    activity_days,
    activity_streaks,
    calculate_module_progress,
    format_duration,
    pick_current_lesson,
    progress_level,
    round_percentage,
)
from coursepath.progress.schemas import ProgressLevel


NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def lesson(lesson_id, status, time_spent=0, attempts=1, updated_at=NOW, completed_at=None):
    return SimpleNamespace(
        lesson_id=lesson_id,
        status=status,
        time_spent=time_spent,
        attempts=attempts,
        updated_at=updated_at,
        completed_at=completed_at,
    )


@pytest.mark.parametrize(
    ("part", "whole", "expected"),
    [
        (0, 4, 0),
        (2, 4, 50),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds half up
        (5, 8, 63),  # 62.5 rounds half up
        (4, 4, 100),
        (7, 4, 100),
        (1, 300, 0),
    ],
)
def test_round_percentage(part: int, whole: int, expected: int) -> None:
    assert round_percentage(part, whole) == expected


def test_round_percentage_without_whole_is_zero() -> None:
    assert round_percentage(3, 0) == 0


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "0m"),
        (59, "0m"),
        (60, "1m"),
        (45 * 60, "45m"),
        (2 * 3600, "2h"),
        (90 * 60, "1h 30m"),
        (3600 + 59, "1h"),
    ],
)
def test_format_duration(seconds: int, expected: str) -> None:
    assert format_duration(seconds) == expected


def test_progress_level_thresholds_are_monotonic() -> None:
    assert progress_level(0) == ProgressLevel.NOT_STARTED
    assert progress_level(1) == ProgressLevel.BEGINNER
    assert progress_level(24) == ProgressLevel.BEGINNER
    assert progress_level(25) == ProgressLevel.INTERMEDIATE
    assert progress_level(74) == ProgressLevel.INTERMEDIATE
    assert progress_level(75) == ProgressLevel.ADVANCED
    assert progress_level(99) == ProgressLevel.ADVANCED
    assert progress_level(100) == ProgressLevel.COMPLETED

    order = list(ProgressLevel)
    ranks = [order.index(progress_level(p)) for p in range(101)]
    assert ranks == sorted(ranks)


def test_module_progress_four_lesson_scenario() -> None:
    lessons = [
        lesson("lesson1", "completed", 60),
        lesson("lesson2", "completed", 90),
        lesson("lesson3", "in_progress", 30),
    ]

    progress = calculate_module_progress("module-1", lessons, total_lessons=4)

    assert progress.completed_lessons == 2
    assert progress.in_progress_lessons == 1
    assert progress.completion_percentage == 50
    assert progress.total_time_spent == 180
    assert progress.formatted_time_spent == "3m"
    assert progress.remaining_lessons == 2
    assert progress.is_completed is False
    assert progress.progress_level == ProgressLevel.INTERMEDIATE
    assert progress.average_time_per_lesson == 75.0
    assert progress.estimated_time_remaining == "2m"
    assert progress.current_lesson_id == "lesson3"


def test_module_with_no_tracked_lessons_is_not_completed() -> None:
    progress = calculate_module_progress("module-1", [], total_lessons=3)

    assert progress.completion_percentage == 0
    assert progress.is_completed is False
    assert progress.formatted_time_spent == "0m"
    assert progress.progress_level == ProgressLevel.NOT_STARTED
    assert progress.current_lesson_id is None


def test_module_completed_when_all_lessons_completed() -> None:
    lessons = [lesson(f"l{i}", "completed", 120) for i in range(3)]

    progress = calculate_module_progress("module-1", lessons, total_lessons=3)

    assert progress.is_completed is True
    assert progress.completion_percentage == 100
    assert progress.remaining_lessons == 0
    assert progress.progress_level == ProgressLevel.COMPLETED


@pytest.mark.parametrize("total", [0, -1])
def test_non_positive_total_lessons_is_a_configuration_error(total: int) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        calculate_module_progress("module-1", [lesson("l1", "completed")], total_lessons=total)

    assert isinstance(exc_info.value, ValidationError)
    assert exc_info.value.kind == ErrorKind.CONFIGURATION
    assert exc_info.value.retryable is False


def test_pick_current_lesson_prefers_most_recent_update() -> None:
    lessons = [
        lesson("a", "in_progress", updated_at=NOW - timedelta(minutes=5)),
        lesson("b", "in_progress", updated_at=NOW),
        lesson("c", "completed", updated_at=NOW + timedelta(minutes=5)),
    ]

    assert pick_current_lesson(lessons).lesson_id == "b"


def test_pick_current_lesson_breaks_ties_by_attempts_then_id() -> None:
    tied_on_time = [
        lesson("a", "in_progress", attempts=3),
        lesson("b", "in_progress", attempts=1),
    ]
    assert pick_current_lesson(tied_on_time).lesson_id == "a"

    tied_on_everything = [
        lesson("a", "in_progress", attempts=2),
        lesson("b", "in_progress", attempts=2),
    ]
    assert pick_current_lesson(tied_on_everything).lesson_id == "b"


def test_pick_current_lesson_handles_naive_timestamps() -> None:
    lessons = [
        lesson("a", "in_progress", updated_at=datetime(2026, 1, 1, 13, 0)),
        lesson("b", "in_progress", updated_at=NOW),
    ]

    assert pick_current_lesson(lessons).lesson_id == "a"


def test_rounded_hundred_percent_is_not_completed_level() -> None:
    lessons = [lesson(f"l{i}", "completed", 60) for i in range(199)]

    progress = calculate_module_progress("module-1", lessons, total_lessons=200)

    assert progress.completion_percentage == 100
    assert progress.is_completed is False
    assert progress.progress_level == ProgressLevel.ADVANCED


def test_more_completed_records_than_lessons_is_not_completed_level() -> None:
    lessons = [lesson(f"l{i}", "completed", 60) for i in range(5)]

    progress = calculate_module_progress("module-1", lessons, total_lessons=4)

    assert progress.completion_percentage == 100
    assert progress.remaining_lessons == 0
    assert progress.is_completed is False
    assert progress.progress_level == ProgressLevel.ADVANCED


TODAY = date(2026, 3, 10)


def days_back(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=offset) for offset in offsets]


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        ([], (0, 0)),
        (days_back(0), (1, 1)),
        (days_back(0, 1, 2), (3, 3)),
        (days_back(1, 2), (0, 2)),
        (days_back(0, 1, 5, 6, 7, 8), (2, 4)),
        (days_back(0, 0, 1), (2, 2)),
        (days_back(-1, 0), (1, 1)),
    ],
)
def test_activity_streaks(days: list[date], expected: tuple[int, int]) -> None:
    assert activity_streaks(days, TODAY) == expected


def test_activity_days_use_utc_dates_of_start_and_update() -> None:
    lessons = [
        SimpleNamespace(
            started_at=datetime(2026, 3, 8, 23, 30, tzinfo=UTC),
            updated_at=datetime(2026, 3, 10, 1, 0, tzinfo=UTC),
        ),
        SimpleNamespace(started_at=datetime(2026, 3, 9, 23, 30), updated_at=datetime(2026, 3, 9, 23, 45)),
    ]

    assert activity_days(lessons) == {date(2026, 3, 8), date(2026, 3, 9), date(2026, 3, 10)}
