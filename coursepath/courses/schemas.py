"""Pydantic schemas for the courses API and the generated course drafts."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coursepath.courses.models import BlockType


class CourseLevel(str, Enum):
    """Learner experience level a course is pitched at."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CourseLength(str, Enum):
    """Requested course length."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class QuestionDraft(BaseModel):
    """A question inside a drafted learning block."""

    text: str = Field(..., min_length=1, description="Learner-facing question text")
    hint: str | None = Field(None, description="Optional hint shown on request")
    expected_answer: str | None = Field(None, description="Reference answer, never shown to the learner")


class BlockDraft(BaseModel):
    """A drafted course block."""

    block_type: BlockType = Field(..., description="introduction, learning, practice or reflection")
    title: str = Field(..., min_length=1, max_length=255)
    content: str | None = Field(None, description="Block body for non-question blocks")
    difficulty: str | None = Field(None, description="easy, medium or hard")
    questions: list[QuestionDraft] = Field(default_factory=list)


class CourseDraft(BaseModel):
    """A course ready to be persisted; block order is list order."""

    title: str = Field(..., min_length=1, max_length=200)
    topic: str = Field(..., min_length=1, max_length=500)
    goal: str | None = None
    level: CourseLevel = CourseLevel.BEGINNER
    length: CourseLength = CourseLength.MEDIUM
    blocks: list[BlockDraft] = Field(default_factory=list)


class GenerateCourseRequest(BaseModel):
    """Schema for asking the AI to draft and save a course."""

    topic: str = Field(..., min_length=1, max_length=500, description="What the learner wants to study")
    goal: str | None = Field(None, description="What the learner wants to achieve")
    level: CourseLevel = CourseLevel.BEGINNER
    length: CourseLength = CourseLength.MEDIUM

    model_config = ConfigDict(extra="forbid")


class BlockUpdate(BaseModel):
    """Editable block fields; omitted fields keep their value."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = None
    difficulty: str | None = Field(None, max_length=20)

    model_config = ConfigDict(extra="forbid")


class QuestionResponse(BaseModel):
    """Schema for a question in course responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    text: str
    hint: str | None = None
    order_index: int


class BlockResponse(BaseModel):
    """Schema for a block in course responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    block_type: BlockType
    title: str
    content: str | None = None
    difficulty: str | None = None
    order_index: int
    questions: list[QuestionResponse] = Field(default_factory=list)


class CourseResponse(BaseModel):
    """Schema for course responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    topic: str
    goal: str | None = None
    level: CourseLevel
    length: CourseLength
    blocks: list[BlockResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
