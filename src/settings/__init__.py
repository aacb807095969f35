"""Handle settings loading."""

from .app import EasySettings, get_settings


__all__ = ["EasySettings", "get_settings"]
