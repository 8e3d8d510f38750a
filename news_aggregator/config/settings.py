"""Application settings using Pydantic Settings for environment-based configuration."""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the news aggregator.

    All settings can be overridden via environment variables.
    Prefix is not used to allow standard env var names (e.g., OPENAI_API_KEY).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Pipeline cadence
    poll_interval_seconds: float = Field(default=30.0, gt=0)
    batch_size: int = Field(default=10, ge=1, le=100)  # Per-source fetch limit
    source_timeout_seconds: float = Field(default=30.0, gt=0)
    shutdown_grace_seconds: float = Field(default=5.0, ge=0)

    # Dedup cache
    cache_retention_hours: float = Field(default=24.0, gt=0)
    cache_sweep_interval_seconds: float = Field(default=3600.0, gt=0)

    # Feed providers (comma-separated for multiple keys with rotation)
    newsapi_api_keys: str | None = None
    cryptopanic_api_key: str | None = None
    treenews_enabled: bool = True

    # HTTP retry configuration
    max_http_retries: int = Field(default=3, ge=0, le=10)
    max_backoff_seconds: float = Field(default=60.0, ge=1.0, le=300.0)

    # Classification
    openai_api_key: SecretStr | None = None

    # Delivery
    telegram_bot_token: SecretStr | None = None
    alert_webhook_url: str | None = None

    # Observability and HTTP surface
    metrics_port: int = 8000
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def cache_retention(self) -> timedelta:
        """Retention window for dedup cache entries."""
        return timedelta(hours=self.cache_retention_hours)

    @property
    def newsapi_configured(self) -> bool:
        return bool(self.newsapi_api_keys)

    @property
    def cryptopanic_configured(self) -> bool:
        return bool(self.cryptopanic_api_key)

    @property
    def classifier_configured(self) -> bool:
        """Check if the OpenAI classifier can be used."""
        return self.openai_api_key is not None

    @property
    def telegram_configured(self) -> bool:
        return self.telegram_bot_token is not None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
