from typing import Any

from .settings import Settings, get_settings


def env(key: str, default: Any = None) -> Any:
    """Look up ``key`` on the settings, falling back to undeclared environment values.

    Declared fields come back validated; anything else is read from the raw
    extras pydantic-settings keeps with ``extra="allow"``.
    """
    settings = get_settings()

    declared = getattr(settings, key.upper(), None)
    if declared is not None:
        return declared

    extras = settings.model_extra or {}
    for candidate in (key, key.lower(), key.upper()):
        if candidate in extras:
            return extras[candidate]
    return default


__all__ = ["Settings", "env", "get_settings"]
