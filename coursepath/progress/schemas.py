"""Schemas for progress API."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coursepath.database.timestamps import ensure_utc_aware
from coursepath.progress.models import LessonStatus


class ProgressLevel(str, Enum):
    """Coarse module progress classification, ordered from least to most progress."""

    NOT_STARTED = "not_started"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    COMPLETED = "completed"


class NextAction(str, Enum):
    """Recommended next step for a learner within a module."""

    START_NEXT_LESSON = "start_next_lesson"
    CONTINUE_CURRENT_LESSON = "continue_current_lesson"
    REVIEW_COMPLETED = "review_completed"
    MODULE_COMPLETED = "module_completed"


class TrackProgressRequest(BaseModel):
    """Schema for tracking a lesson interaction."""

    module_id: str = Field(..., min_length=1, max_length=255)
    lesson_id: str = Field(..., min_length=1, max_length=255)
    status: LessonStatus
    time_spent: int = Field(..., ge=0, description="Seconds spent since the last report")
    completed_at: datetime | None = None
    request_id: str | None = Field(
        default=None,
        max_length=128,
        description="Idempotency key; a retried request with the same key is not counted twice",
    )


class LessonProgressRecord(BaseModel):
    """Schema for lesson progress response."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    module_id: str
    lesson_id: str
    status: LessonStatus
    time_spent: int
    attempts: int
    completed_at: datetime | None = None
    started_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("completed_at", "started_at", "updated_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc_aware(v)


class ModuleProgress(BaseModel):
    """Module progress derived from the module's lesson records."""

    module_id: str
    completed_lessons: int
    in_progress_lessons: int
    total_lessons: int
    completion_percentage: int = Field(..., ge=0, le=100)
    is_completed: bool
    total_time_spent: int
    formatted_time_spent: str
    remaining_lessons: int
    progress_level: ProgressLevel
    average_time_per_lesson: float
    estimated_time_remaining: str
    current_lesson_id: str | None = None


class RecommendationRequest(BaseModel):
    """Schema for asking what the learner should do next in a module."""

    total_lessons: int = Field(..., description="Lesson count from the course catalog")
    current_lesson_id: str | None = None
    next_lesson_id: str | None = None
    lesson_ids: list[str] | None = Field(default=None, description="Ordered lesson ids of the module")


class RecommendationResponse(BaseModel):
    """Schema for the next-action recommendation."""

    action: NextAction
    current_lesson_id: str | None = None
    next_lesson_id: str | None = None
    module_progress: ModuleProgress | None = None


class ReviewResponse(BaseModel):
    """Schema for the lessons worth revisiting."""

    action: NextAction = NextAction.REVIEW_COMPLETED
    lesson_ids: list[str]


class ModuleActivitySummary(BaseModel):
    """Schema for one module in the user overview."""

    module_id: str
    tracked_lessons: int
    completed_lessons: int
    in_progress_lessons: int
    total_time_spent: int
    total_lessons: int | None = Field(None, description="Set when the caller supplied the module's lesson count")
    completion_percentage: int | None = Field(None, ge=0, le=100)
    is_completed: bool = False
    current_lesson_id: str | None = None
    last_activity_at: datetime | None = None


class UserProgressOverview(BaseModel):
    """Schema for the user's progress across all tracked modules."""

    user_id: str
    modules: list[ModuleActivitySummary]
    modules_started: int
    modules_completed: int
    completion_rate: float = Field(..., ge=0, le=100, description="Completed modules as a percentage of started ones")
    lessons_completed: int
    lessons_in_progress: int
    total_time_spent: int
    formatted_time_spent: str
    average_time_per_lesson: float
    days_active: int
    current_streak: int = Field(..., description="Consecutive active days ending today")
    longest_streak: int
