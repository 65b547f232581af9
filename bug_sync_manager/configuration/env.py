"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from bug_sync_manager.utils.constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SENTRY_BASE_URL,
    DEFAULT_SYNC_ISSUE_LIMIT,
    LINEAR_API_URL,
)


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False
    BUG_SYNC_CONFIG_PATH: Path = DEFAULT_CONFIG_PATH

    # API settings
    SENTRY_BASE_URL: str = DEFAULT_SENTRY_BASE_URL
    LINEAR_API_URL: str = LINEAR_API_URL
    HTTP_TIMEOUT: float = DEFAULT_HTTP_TIMEOUT

    # Sync settings
    SYNC_ISSUE_LIMIT: int = DEFAULT_SYNC_ISSUE_LIMIT


settings = Settings()
