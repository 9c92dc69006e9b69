"""
Configuration management for Nestera.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for store, mint and API configuration.
"""

from nestera.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
