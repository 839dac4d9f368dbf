"""Public API for the config package."""

from .settings import LOG_LEVELS, MEMORY_DATABASE_URL, ConfigError, LockConfig, NewsroomSettings

__all__ = ["NewsroomSettings", "LockConfig", "ConfigError", "MEMORY_DATABASE_URL", "LOG_LEVELS"]
