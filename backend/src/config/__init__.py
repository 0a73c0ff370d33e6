"""
Configuration module for Meetboard backend.

Provides centralized configuration for moderation, featured listings,
the gallery sweep and slug generation.
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
