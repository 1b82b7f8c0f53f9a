"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults for anything missing.

Usage:
    from bubblegrade.config.app_config import load_app_config

    config = load_app_config()
    config.analytics.recent_window
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

CONFIG_FILENAME = "app_config_v1.yaml"


def config_file_for(data_dir: Path) -> Path:
    """Config file location inside a data directory."""
    return data_dir / "config" / CONFIG_FILENAME


# Config file path (relative to project root)
CONFIG_FILE = config_file_for(Path("data"))


@dataclass
class StorageConfig:
    """Where the record store lives, relative to the data directory."""

    db_filename: str = "db/bubblegrade.db"


@dataclass
class AnalyticsConfig:
    """Defaults for student performance summaries."""

    recent_window: int = 5
    unknown_exam_label: str = "Unknown Exam"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    settings: dict[str, Any] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "storage": {
            "db_filename": "db/bubblegrade.db",
        },
        "analytics": {
            "recent_window": 5,
            "unknown_exam_label": "Unknown Exam",
        },
        "settings": {
            "skip_verify_detection": True,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig, filling gaps from defaults."""
    defaults = _get_defaults()

    storage_data = {**defaults["storage"], **(data.get("storage") or {})}
    storage = StorageConfig(db_filename=storage_data["db_filename"])

    analytics_data = {**defaults["analytics"], **(data.get("analytics") or {})}
    recent_window = int(analytics_data["recent_window"])
    if recent_window < 1:
        logger.warning("invalid_recent_window", value=recent_window)
        recent_window = defaults["analytics"]["recent_window"]
    analytics = AnalyticsConfig(
        recent_window=recent_window,
        unknown_exam_label=analytics_data["unknown_exam_label"],
    )

    settings = {**defaults["settings"], **(data.get("settings") or {})}

    return AppConfig(storage=storage, analytics=analytics, settings=settings)


def load_app_config(
    config_path: Path | None = None,
    force_reload: bool = False,
) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        config_path: YAML file to read. Defaults to CONFIG_FILE.
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_path is None:
        return _cached_config

    path = config_path or CONFIG_FILE
    data: dict[str, Any]

    if path.exists():
        logger.debug("loading_app_config", source=str(path))
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = {}

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
