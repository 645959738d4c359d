"""Schemas for learning sessions API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coursepath.database.timestamps import ensure_utc_aware


class AdvanceResult(BaseModel):
    """Outcome of moving a session past its current block."""

    completed: bool
    next_block_id: UUID | None = None
    course_id: UUID | None = Field(None, description="Set when the course was finished by this advance")
    progress: float = Field(..., ge=0, le=100)


class AnswerRequest(BaseModel):
    """Schema for submitting an answer to the current question."""

    answer: str = Field(..., description="Learner's answer; stored nowhere, grading happens elsewhere")


class InsightItem(BaseModel):
    """A single free-text insight."""

    type: str = Field("note", min_length=1, max_length=50)
    content: str = Field(..., min_length=1)


class InsightsRequest(BaseModel):
    """Schema for recording insights against the session's current block."""

    insights: list[InsightItem] = Field(..., min_length=1)


class InsightsRecorded(BaseModel):
    """Schema for the insights write result."""

    recorded: int
    total_insights: int


class SessionInsightResponse(BaseModel):
    """Schema for a stored insight."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    block_id: UUID
    insight_type: str
    content: str
    created_at: datetime


class LearningSessionResponse(BaseModel):
    """Schema for learning session responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    current_block_id: UUID
    current_question_index: int
    progress: float
    started_at: datetime
    completed_at: datetime | None = None
    insights: list[SessionInsightResponse] = Field(default_factory=list)

    @field_validator("started_at", "completed_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc_aware(v)


class CourseProgressResponse(BaseModel):
    """Schema for aggregate course progress."""

    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    completed_blocks: list[str]
    total_insights: int
    progress_percentage: float
    last_active_at: datetime | None = None
