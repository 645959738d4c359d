"""Course drafting with the LLM call mocked out."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from coursepath.config.settings import get_settings
from coursepath.courses.generator import CourseGenerator
from coursepath.courses.schemas import CourseLength, CourseLevel
from coursepath.exceptions import ExternalServiceError


DRAFT = {
    "title": "Rust Ownership",
    "topic": "rust",
    "goal": None,
    "level": "advanced",
    "length": "long",
    "blocks": [
        {"block_type": "introduction", "title": "Welcome", "content": "Why ownership matters"},
        {
            "block_type": "learning",
            "title": "Borrowing",
            "difficulty": "easy",
            "questions": [{"text": "What is a borrow?", "hint": "Think references"}],
        },
        {"block_type": "reflection", "title": "Wrap up"},
    ],
}


def _completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.mark.asyncio
async def test_draft_course_validates_model_output() -> None:
    mock = AsyncMock(return_value=_completion(json.dumps(DRAFT)))

    with patch("coursepath.courses.generator.litellm.acompletion", mock):
        draft = await CourseGenerator(model="test/model").draft_course(
            "rust", level=CourseLevel.BEGINNER, length=CourseLength.SHORT, goal="Write safe code"
        )

    assert draft.title == "Rust Ownership"
    assert [block.block_type.value for block in draft.blocks] == ["introduction", "learning", "reflection"]
    # The request wins over the echoed values
    assert draft.level == CourseLevel.BEGINNER
    assert draft.length == CourseLength.SHORT
    assert draft.goal == "Write safe code"

    kwargs = mock.await_args.kwargs
    assert kwargs["model"] == "test/model"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "rust" in kwargs["messages"][0]["content"]


@pytest.mark.asyncio
async def test_fenced_json_is_accepted() -> None:
    fenced = "```json\n" + json.dumps(DRAFT) + "\n```"

    with patch("coursepath.courses.generator.litellm.acompletion", AsyncMock(return_value=_completion(fenced))):
        draft = await CourseGenerator(model="test/model").draft_course("rust")

    assert len(draft.blocks) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["not json", json.dumps({**DRAFT, "blocks": []})])
async def test_unusable_output_is_an_external_service_error(content: str) -> None:
    with patch("coursepath.courses.generator.litellm.acompletion", AsyncMock(return_value=_completion(content))):
        with pytest.raises(ExternalServiceError) as exc_info:
            await CourseGenerator(model="test/model").draft_course("rust")

    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_provider_failure_is_an_external_service_error() -> None:
    failing = AsyncMock(side_effect=RuntimeError("rate limited"))

    with patch("coursepath.courses.generator.litellm.acompletion", failing):
        with pytest.raises(ExternalServiceError) as exc_info:
            await CourseGenerator(model="test/model").draft_course("rust")

    assert "rate limited" in exc_info.value.message


@pytest.mark.asyncio
async def test_missing_model_configuration_is_reported(monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "PRIMARY_LLM_MODEL", "")

    with pytest.raises(ExternalServiceError):
        await CourseGenerator().draft_course("rust")


@pytest.mark.asyncio
async def test_generate_endpoint_persists_draft(client_factory) -> None:
    client = await client_factory()

    with patch(
        "coursepath.courses.generator.litellm.acompletion", AsyncMock(return_value=_completion(json.dumps(DRAFT)))
    ), patch("coursepath.courses.generator.get_settings") as settings:
        settings.return_value = SimpleNamespace(
            primary_llm_model="test/model",
            AI_TEMPERATURE_DEFAULT=0.2,
            AI_MAX_TOKENS_DEFAULT=1000,
            AI_REQUEST_TIMEOUT=5,
        )
        resp = await client.post("/api/v1/courses/generate", json={"topic": "rust", "length": "short"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["topic"] == "rust"
    assert len(body["blocks"]) == 3

    fetched = await client.get(f"/api/v1/courses/{body['id']}")
    assert fetched.json()["blocks"][1]["questions"][0]["text"] == "What is a borrow?"
