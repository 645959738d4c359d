"""Translate exceptions into the shared JSON error body.

Every error response has the shape::

    {"error": {"category": ..., "code": ..., "detail": ..., "suggestions": [...], "metadata": {...}}}

Domain errors are routed by their ``ErrorKind`` tag, never by class, so a new
subclass only needs the right kind to get the right status.
"""

import logging
from typing import Any, NamedTuple
from uuid import UUID, uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from coursepath.exceptions import DomainError, ErrorKind, NotFoundError, ValidationError


logger = logging.getLogger(__name__)

_REDACTED_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})


class ErrorCategory:
    """Coarse error families shown to clients."""

    VALIDATION = "VALIDATION_ERROR"
    DATABASE = "DATABASE_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT_ERROR"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class ErrorCode:
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    DB_CONNECTION_FAILED = "DB_CONNECTION_FAILED"
    DB_UNIQUE_VIOLATION = "DB_UNIQUE_VIOLATION"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL = "INTERNAL_ERROR"


class ErrorMapping(NamedTuple):
    status_code: int
    category: str
    code: str
    suggestions: tuple[str, ...] = ()
    log_level: int = logging.INFO


KIND_MAPPINGS: dict[ErrorKind, ErrorMapping] = {
    ErrorKind.VALIDATION: ErrorMapping(
        status.HTTP_400_BAD_REQUEST, ErrorCategory.VALIDATION, ErrorCode.INVALID_INPUT
    ),
    ErrorKind.CONFIGURATION: ErrorMapping(
        status.HTTP_400_BAD_REQUEST,
        ErrorCategory.VALIDATION,
        ErrorCode.INVALID_CONFIGURATION,
        ("Check the course or module structure supplied with the request",),
    ),
    ErrorKind.NOT_FOUND: ErrorMapping(
        status.HTTP_404_NOT_FOUND, ErrorCategory.RESOURCE_NOT_FOUND, ErrorCode.NOT_FOUND
    ),
    ErrorKind.CONFLICT: ErrorMapping(status.HTTP_409_CONFLICT, ErrorCategory.CONFLICT, ErrorCode.INVALID_STATE),
    ErrorKind.PERSISTENCE: ErrorMapping(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorCategory.DATABASE,
        ErrorCode.DB_CONNECTION_FAILED,
        ("Retry the request shortly",),
        logging.ERROR,
    ),
    ErrorKind.EXTERNAL_SERVICE: ErrorMapping(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorCategory.EXTERNAL_SERVICE,
        ErrorCode.SERVICE_UNAVAILABLE,
        ("The course generator is unavailable", "Retry the request shortly"),
        logging.ERROR,
    ),
}


def error_response(
    status_code: int,
    category: str,
    code: str,
    detail: str,
    *,
    suggestions: tuple[str, ...] | list[str] = (),
    metadata: dict[str, Any] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"category": category, "code": code, "detail": detail}
    if suggestions:
        body["suggestions"] = list(suggestions)
    if metadata:
        body["metadata"] = metadata
    return JSONResponse(status_code=status_code, content={"error": body})


def _error_metadata(exc: DomainError) -> dict[str, Any]:
    metadata: dict[str, Any] = {"retryable": exc.retryable}
    if isinstance(exc, ValidationError) and exc.field:
        metadata["field"] = exc.field
    elif isinstance(exc, NotFoundError):
        metadata["resource_type"] = exc.resource_type
        metadata["resource_id"] = exc.resource_id
    return metadata


async def handle_domain_errors(request: Request, exc: DomainError) -> JSONResponse:
    """Render a DomainError according to its kind."""
    mapping = KIND_MAPPINGS[exc.kind]
    logger.log(mapping.log_level, f"{request.method} {request.url.path} failed ({exc.kind.value}): {exc.message}")

    return error_response(
        mapping.status_code,
        mapping.category,
        mapping.code,
        exc.message,
        suggestions=mapping.suggestions,
        metadata=_error_metadata(exc),
    )


async def handle_validation_errors(request: Request, exc: Exception) -> JSONResponse:
    """Render FastAPI and pydantic validation failures as 422 with per-field messages."""
    errors = []
    if isinstance(exc, RequestValidationError | PydanticValidationError):
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"], "type": error["type"]}
            for error in exc.errors()
        ]
    logger.info(f"{request.method} {request.url.path} rejected: {len(errors)} invalid field(s)")

    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorCategory.VALIDATION,
        ErrorCode.INVALID_INPUT,
        "Invalid input data",
        metadata={"errors": errors},
    )


async def handle_database_errors(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} hit an untranslated {type(exc).__name__}: {exc}")

    if isinstance(exc, IntegrityError):
        return error_response(
            status.HTTP_409_CONFLICT,
            ErrorCategory.DATABASE,
            ErrorCode.DB_UNIQUE_VIOLATION,
            "The write conflicts with an existing record",
        )
    if isinstance(exc, OperationalError):
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            ErrorCategory.DATABASE,
            ErrorCode.DB_CONNECTION_FAILED,
            "Database connection error",
            suggestions=("Retry the request shortly",),
        )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCategory.DATABASE, ErrorCode.INTERNAL, "A database error occurred"
    )


def log_error_context(request: Request, exc: Exception, error_id: UUID) -> None:
    """Log an unexpected failure with enough request context to find it again."""
    context = {
        "error_id": str(error_id),
        "method": request.method,
        "path": request.url.path,
        "query_params": dict(request.query_params),
        "user_id": getattr(request.state, "user_id", None),
        "headers": {k: v for k, v in request.headers.items() if k.lower() not in _REDACTED_HEADERS},
    }
    logger.error(f"Unhandled {type(exc).__name__} ({error_id})", extra=context, exc_info=exc)


async def handle_unexpected_errors(request: Request, exc: Exception) -> JSONResponse:
    error_id = uuid4()
    log_error_context(request, exc, error_id)

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCategory.INTERNAL,
        ErrorCode.INTERNAL,
        "An unexpected error occurred",
        suggestions=("Contact support with the error ID if this keeps happening",),
        metadata={"error_id": str(error_id)},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register every handler on the application, most specific first."""
    app.add_exception_handler(DomainError, handle_domain_errors)
    app.add_exception_handler(RequestValidationError, handle_validation_errors)
    app.add_exception_handler(PydanticValidationError, handle_validation_errors)
    app.add_exception_handler(SQLAlchemyError, handle_database_errors)
    app.add_exception_handler(Exception, handle_unexpected_errors)
