"""Configuration management using pydantic-settings."""

from .settings import (
    EngineSettings,
    EsbuildSettings,
    LoggingSettings,
    ServerSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "EngineSettings",
    "EsbuildSettings",
    "LoggingSettings",
    "ServerSettings",
    "clear_settings_cache",
    "get_settings",
]
