from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    This uses pydantic-settings so that we get type validation and defaults.
    Settings are loaded from environment variables with optional .env file override.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: affects logging and error handling."""

    DEBUG: bool = True
    """Enable debug mode: verbose logging and development features."""

    # DB
    DATABASE_URL: Optional[str] = None
    """Database connection URL. If None, uses SQLite for development."""

    # Gmail OAuth client (user tokens live on the users table)
    GMAIL_CLIENT_ID: Optional[str] = None
    """OAuth2 client ID used to refresh users' Gmail access tokens."""

    GMAIL_CLIENT_SECRET: Optional[str] = None
    """OAuth2 client secret paired with GMAIL_CLIENT_ID."""

    # LLM
    GEMINI_API_KEY: Optional[str] = None
    """API key for the Gemini text-generation service."""

    GEMINI_MODEL: Optional[str] = None
    """Model name for Gemini (e.g., 'gemini-2.5-flash-lite')."""

    # Sync trigger watcher
    SYNC_POLL_INTERVAL_SECONDS: int = 5
    """How often the trigger watcher looks for new sync requests."""

    SYNC_WATCHER_AUTOSTART: bool = True
    """Start the trigger watcher on application startup."""

    # Investment price updates
    PRICE_UPDATES_ENABLED: bool = True
    """Run the weekday price updater in the background."""

    PRICE_UPDATE_TIMEZONE: str = "Asia/Kolkata"
    """Time zone in which the daily price update schedule is evaluated."""

    QUOTE_API_TIMEOUT: float = 10.0
    """Timeout in seconds for quote lookups."""

    # Model config
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def gmail_client_configured(self) -> bool:
        return bool(self.GMAIL_CLIENT_ID and self.GMAIL_CLIENT_SECRET)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly.

    Uses LRU cache to ensure only one Settings instance exists per process,
    improving performance and ensuring consistency.
    """
    return Settings()
