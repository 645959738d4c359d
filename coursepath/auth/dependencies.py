"""FastAPI authentication dependencies.

OAuth and session handling live in front of this service (identity proxy or
session provider). The backend trusts the subject it forwards and scopes every
record by it; it performs no further authorization.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from coursepath.auth.exceptions import MissingSubjectError
from coursepath.config.settings import get_settings


logger = logging.getLogger(__name__)


def get_user_id(request: Request) -> str:
    """Resolve the authenticated subject for the current request."""
    settings = get_settings()

    # Upstream middleware may already have resolved the subject
    state_user_id = getattr(request.state, "user_id", None)
    if state_user_id:
        return str(state_user_id)

    if settings.AUTH_PROVIDER == "none":
        return settings.DEFAULT_USER_ID

    subject = request.headers.get(settings.USER_ID_HEADER, "").strip()
    if not subject:
        logger.warning(f"Request to {request.url.path} without {settings.USER_ID_HEADER}")
        raise MissingSubjectError(settings.USER_ID_HEADER)

    request.state.user_id = subject
    return subject


# This is the dependency to use in routers
# Usage: async def my_route(user_id: UserId) -> Response:
UserId = Annotated[str, Depends(get_user_id)]
