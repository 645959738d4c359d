"""Lesson progress tracking, module aggregation and next-action recommendations."""

from .router import router
from .service import ProgressService


__all__ = ["ProgressService", "router"]
