"""Configuration management for the attendance tracker.

Loads YAML configuration merged over built-in defaults and exposes
secrets and the config location through Pydantic BaseSettings.
"""

import os
from datetime import tzinfo
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

from ..core.logical_day import validate_reset_hour
from .logger import setup_logger

logger = setup_logger(__name__)

LOCALTIME_PATH = Path("/etc/localtime")


class Settings(BaseSettings):
    """Application settings loaded from environment and config file."""

    config_path: Path = Field(default=Path("configs/config.yaml"))
    discord_bot_token: str | None = None
    discord_channel_id: str | None = None

    model_config = {"env_prefix": "KINTAI_"}

    def load_config(self) -> dict:
        """Load the YAML configuration merged over the defaults.

        Returns:
            Configuration dictionary.

        Raises:
            ValueError: If ``attendance.reset_hour`` is outside 0-23.
        """
        if not self.config_path.exists():
            logger.warning("Config file not found at %s, using defaults", self.config_path)
            config = _default_config()
        else:
            with open(self.config_path, encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
            config = _deep_merge(_default_config(), user_config)
            logger.info("Configuration loaded from %s", self.config_path)

        validate_reset_hour(config["attendance"]["reset_hour"])
        return config

    @property
    def notifier_configured(self) -> bool:
        """Whether Discord credentials are available."""
        return bool(self.discord_bot_token and self.discord_channel_id)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton.

    Returns:
        Settings instance.
    """
    return Settings()


def resolve_timezone(config: dict) -> tzinfo | None:
    """Return the zone in which logical days are evaluated.

    ``attendance.timezone`` is an IANA name. When unset, the host zone is
    used with its daylight-saving rules. Returns None if the host zone has
    no IANA form, in which case each instant is localized on its own.
    """
    name = config.get("attendance", {}).get("timezone")
    if name:
        return ZoneInfo(name)
    return host_timezone()


def host_timezone() -> tzinfo | None:
    """Return the DST-aware zone of the host from ``TZ`` or ``/etc/localtime``."""
    env = os.environ.get("TZ", "").lstrip(":")
    if env:
        try:
            return ZoneInfo(env)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("TZ=%s is not an IANA zone, localizing per instant", env)
            return None

    if LOCALTIME_PATH.exists():
        try:
            with open(LOCALTIME_PATH, "rb") as f:
                return ZoneInfo.from_file(f, key="localtime")
        except ValueError as e:
            logger.warning("Cannot read %s: %s", LOCALTIME_PATH, e)
    return None


def _deep_merge(base: dict, override: dict) -> dict:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _default_config() -> dict:
    """Return default configuration when config file is missing.

    Returns:
        Dictionary with sensible default values.
    """
    return {
        "attendance": {
            "reset_hour": 5,
            "timezone": None,
        },
        "database": {
            "path": "data/kintai.db",
        },
        "sessions": {
            "ttl_minutes": 60,
            "purge_interval_minutes": 5,
        },
        "notifier": {
            "enabled": True,
        },
        "api": {
            "host": "0.0.0.0",
            "port": 9393,
            "reload": False,
        },
    }
