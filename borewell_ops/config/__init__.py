"""
Configuration for the borewell ops backend.

Settings are read from environment variables and an optional .env file.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
