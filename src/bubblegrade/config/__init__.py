"""Configuration package for bubblegrade."""

from bubblegrade.config.app_config import (
    AnalyticsConfig,
    AppConfig,
    StorageConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AnalyticsConfig",
    "AppConfig",
    "StorageConfig",
    "clear_config_cache",
    "load_app_config",
]
