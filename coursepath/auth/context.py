"""Request-scoped auth context pairing the subject with a database session."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coursepath.auth.dependencies import UserId
from coursepath.database.session import DbSession


class AuthContext:
    """Authenticated user id plus the request's AsyncSession."""

    def __init__(self, user_id: str, session: AsyncSession) -> None:
        self.user_id = user_id
        self.session = session


def get_auth_context(user_id: UserId, session: DbSession) -> AuthContext:
    """Build the auth context for the current request."""
    return AuthContext(user_id, session)


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]
