"""Async engine, per-request sessions and the declarative base shared by every table."""

from .base import Base
from .session import DbSession, get_db_session


__all__ = ["Base", "DbSession", "get_db_session"]
