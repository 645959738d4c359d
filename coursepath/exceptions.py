"""Domain error taxonomy shared by the progress, session and course packages.

Every error carries a stable ``kind`` tag and a ``retryable`` flag so callers
(HTTP handlers, background callers) can branch on the failure category without
matching on concrete classes.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Stable error categories."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERSISTENCE = "persistence"
    EXTERNAL_SERVICE = "external_service"


class DomainError(Exception):
    """Base exception class for all domain-specific exceptions."""

    retryable = False

    def __init__(self, message: str, *, kind: ErrorKind) -> None:
        self.message = message
        self.kind = kind
        super().__init__(self.message)


class ValidationError(DomainError):
    """Exception raised when input validation fails."""

    def __init__(self, message: str, *, field: str | None = None, kind: ErrorKind = ErrorKind.VALIDATION) -> None:
        self.field = field
        super().__init__(message, kind=kind)


class ConfigurationError(ValidationError):
    """Catalog data makes the operation meaningless (no blocks, no lessons)."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message, field=field, kind=ErrorKind.CONFIGURATION)


class NotFoundError(DomainError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: object) -> None:
        self.resource_type = resource_type
        self.resource_id = str(resource_id)
        message = f"{resource_type} with ID {resource_id} not found"
        super().__init__(message, kind=ErrorKind.NOT_FOUND)


class ConflictError(DomainError):
    """The resource is not in a state that allows the operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.CONFLICT)


class SessionCompletedError(ConflictError):
    """Raised when mutating a learning session that already finished."""

    def __init__(self, session_id: object) -> None:
        self.session_id = str(session_id)
        super().__init__(f"Learning session {session_id} is already completed")


class CourseAlreadyCompletedError(ConflictError):
    """Raised when resuming a course whose blocks are all completed."""

    def __init__(self, course_id: object) -> None:
        self.course_id = str(course_id)
        super().__init__(f"Course {course_id} is already completed")


class ConcurrentUpdateError(ConflictError):
    """Another request moved the session pointer first."""

    def __init__(self, session_id: object) -> None:
        self.session_id = str(session_id)
        super().__init__(f"Learning session {session_id} was advanced by a concurrent request")


class PersistenceError(DomainError):
    """The store failed to read or write. Reads may be retried by the caller."""

    retryable = True

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.PERSISTENCE)


class ExternalServiceError(DomainError):
    """An external collaborator (LLM provider) failed."""

    retryable = True

    def __init__(self, service: str, detail: str) -> None:
        self.service = service
        super().__init__(f"{service} service error: {detail}", kind=ErrorKind.EXTERNAL_SERVICE)
