"""AI course drafting through LiteLLM."""

import asyncio
import logging
from typing import Any

import litellm
from pydantic import ValidationError as PydanticValidationError

from coursepath.config.settings import get_settings
from coursepath.courses.prompts import (
    COURSE_DRAFT_PROMPT,
    DIFFICULTY_BY_LEVEL,
    LENGTH_BLUEPRINT,
    QUESTIONS_PER_LEARNING_BLOCK,
)
from coursepath.courses.schemas import CourseDraft, CourseLength, CourseLevel
from coursepath.exceptions import ExternalServiceError


logger = logging.getLogger(__name__)

_SERVICE = "LLM"


def _strip_code_fence(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.removesuffix("```").strip()
    return text


class CourseGenerator:
    """Drafts course structures with the configured LLM."""

    def __init__(self, model: str | None = None) -> None:
        self._model = model

    async def complete(self, messages: list[dict[str, Any]], temperature: float | None = None) -> Any:
        """Low-level completion call using LiteLLM directly."""
        settings = get_settings()
        try:
            request_model = self._model or settings.primary_llm_model
        except ValueError as e:
            raise ExternalServiceError(_SERVICE, str(e)) from e

        kwargs = {
            "model": request_model,
            "messages": messages,
            "temperature": temperature if temperature is not None else settings.AI_TEMPERATURE_DEFAULT,
            "max_tokens": settings.AI_MAX_TOKENS_DEFAULT,
            "timeout": settings.AI_REQUEST_TIMEOUT,
            "response_format": {"type": "json_object"},
        }

        try:
            return await asyncio.wait_for(litellm.acompletion(**kwargs), timeout=settings.AI_REQUEST_TIMEOUT)
        except TimeoutError as e:
            logger.warning(f"Model {request_model} timed out after {settings.AI_REQUEST_TIMEOUT}s")
            raise ExternalServiceError(_SERVICE, "request timed out") from e
        except Exception as e:
            logger.exception("Error in model completion")
            raise ExternalServiceError(_SERVICE, f"completion failed: {e}") from e

    async def draft_course(
        self,
        topic: str,
        level: CourseLevel = CourseLevel.BEGINNER,
        length: CourseLength = CourseLength.MEDIUM,
        goal: str | None = None,
    ) -> CourseDraft:
        """Ask the model for a course draft and validate it.

        Raises
        ------
            ExternalServiceError: The provider failed or returned an unusable draft.
        """
        learning_blocks, practice_blocks = LENGTH_BLUEPRINT[length.value]
        prompt = COURSE_DRAFT_PROMPT.substitute(
            topic=topic,
            goal=goal or "not specified",
            level=level.value,
            length=length.value,
            learning_blocks=learning_blocks,
            practice_blocks=practice_blocks,
            questions_per_block=QUESTIONS_PER_LEARNING_BLOCK,
            difficulty=DIFFICULTY_BY_LEVEL[level.value],
        )
        messages = [
            {"role": "system", "content": prompt},
            {"role": "user", "content": f"Create a course about: {topic}"},
        ]

        response = await self.complete(messages)
        content = response.choices[0].message.content or ""

        try:
            draft = CourseDraft.model_validate_json(_strip_code_fence(content))
        except PydanticValidationError as e:
            logger.warning(f"Course draft for '{topic}' failed validation: {e}")
            raise ExternalServiceError(_SERVICE, "returned an invalid course draft") from e

        if not draft.blocks:
            raise ExternalServiceError(_SERVICE, "returned a course without blocks")

        # The learner's request wins over whatever the model echoed back
        draft = draft.model_copy(update={"topic": topic, "level": level, "length": length, "goal": goal or draft.goal})
        logger.info(f"Drafted course '{draft.title}' with {len(draft.blocks)} blocks")
        return draft
