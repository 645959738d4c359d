"""Course generation, learning sessions and progress tracking backend."""

__version__ = "0.1.0"
