"""Tests for the error taxonomy and its HTTP mapping."""

import json
from types import SimpleNamespace

import pytest

from coursepath.exceptions import (
    ConcurrentUpdateError,
    ConfigurationError,
    CourseAlreadyCompletedError,
    DomainError,
    ErrorKind,
    ExternalServiceError,
    NotFoundError,
    PersistenceError,
    SessionCompletedError,
    ValidationError,
)
from coursepath.middleware.error_handlers import handle_domain_errors


@pytest.mark.parametrize(
    ("error", "kind", "retryable"),
    [
        (ValidationError("bad"), ErrorKind.VALIDATION, False),
        (ConfigurationError("no blocks"), ErrorKind.CONFIGURATION, False),
        (NotFoundError("Course", "abc"), ErrorKind.NOT_FOUND, False),
        (SessionCompletedError("s1"), ErrorKind.CONFLICT, False),
        (CourseAlreadyCompletedError("c1"), ErrorKind.CONFLICT, False),
        (ConcurrentUpdateError("s1"), ErrorKind.CONFLICT, False),
        (PersistenceError("Failed to save"), ErrorKind.PERSISTENCE, True),
        (ExternalServiceError("LLM", "down"), ErrorKind.EXTERNAL_SERVICE, True),
    ],
)
def test_errors_carry_kind_and_retryable(error: DomainError, kind: ErrorKind, retryable: bool) -> None:
    assert error.kind == kind
    assert error.retryable is retryable


def test_not_found_message_names_resource() -> None:
    error = NotFoundError("Learning session", "s-42")

    assert error.resource_type == "Learning session"
    assert error.resource_id == "s-42"
    assert str(error) == "Learning session with ID s-42 not found"


def _request() -> SimpleNamespace:
    return SimpleNamespace(method="POST", url=SimpleNamespace(path="/api/v1/test"))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (ValidationError("bad", field="time_spent"), 400, "INVALID_INPUT"),
        (ConfigurationError("no lessons", field="total_lessons"), 400, "INVALID_CONFIGURATION"),
        (NotFoundError("Course", "abc"), 404, "NOT_FOUND"),
        (SessionCompletedError("s1"), 409, "INVALID_STATE"),
        (PersistenceError("Failed to save"), 503, "DB_CONNECTION_FAILED"),
        (ExternalServiceError("LLM", "down"), 503, "SERVICE_UNAVAILABLE"),
    ],
)
async def test_domain_errors_map_to_status_and_code(error: DomainError, status_code: int, code: str) -> None:
    response = await handle_domain_errors(_request(), error)
    body = json.loads(response.body)

    assert response.status_code == status_code
    assert body["error"]["code"] == code
    assert body["error"]["detail"] == error.message
    assert body["error"]["metadata"]["retryable"] is error.retryable


@pytest.mark.asyncio
async def test_validation_error_reports_field() -> None:
    response = await handle_domain_errors(_request(), ValidationError("negative", field="time_spent"))
    body = json.loads(response.body)

    assert body["error"]["metadata"]["field"] == "time_spent"
