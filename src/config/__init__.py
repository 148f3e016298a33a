"""
Configuration package for htmlua

Provides application settings from a TOML file and environment variables
using pydantic-settings.
"""

from .settings import AppSettings, settings_load, configPath_get

__all__ = ["AppSettings", "settings_load", "configPath_get"]
