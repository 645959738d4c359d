"""Authentication-specific exceptions."""

from fastapi import HTTPException, status


class AuthenticationError(HTTPException):
    """Base authentication error."""

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class MissingSubjectError(AuthenticationError):
    """The upstream identity provider did not forward a subject."""

    def __init__(self, header: str) -> None:
        super().__init__(detail=f"Missing authenticated subject header '{header}'")
