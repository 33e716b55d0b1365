"""Configuration helpers for httpease clients."""

from .settings import get_settings, Settings

__all__ = ["get_settings", "Settings"]
