"""Authentication module exports."""

from coursepath.auth.context import AuthContext, CurrentAuth
from coursepath.auth.dependencies import UserId, get_user_id


__all__ = [
    "AuthContext",
    "CurrentAuth",
    "UserId",
    "get_user_id",
]
