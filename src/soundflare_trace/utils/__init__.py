"""Utility modules for soundflare-trace."""

from .settings import Settings, get_settings, save_settings

__all__ = [
    "Settings",
    "get_settings",
    "save_settings",
]
