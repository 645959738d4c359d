"""Block-based learning sessions: advancing, answering and resuming courses."""

from .router import router
from .service import SessionService


__all__ = ["SessionService", "router"]
