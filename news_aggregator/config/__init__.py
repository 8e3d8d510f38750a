"""Application configuration."""

from news_aggregator.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
