"""Course catalog, AI course drafting and course endpoints."""

from .router import router
from .service import CourseService


__all__ = ["CourseService", "router"]
