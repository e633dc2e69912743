"""Application configuration for CaseGuard."""

from .settings import Settings, configure, get_settings

__all__ = [
    "Settings",
    "configure",
    "get_settings",
]
