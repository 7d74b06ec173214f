from __future__ import annotations

from dataclasses import replace
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import AppConfig, load_config
from .constants import DEFAULT_CONFIG_PATH, ENV_PREFIX


class Settings(BaseSettings):
    """Process settings sourced from ``M2D_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    config_path: Path = DEFAULT_CONFIG_PATH
    temp_dir: Path | None = None
    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


def load_effective_config(path: Path | None = None, settings: Settings | None = None) -> AppConfig:
    settings = settings or get_settings()
    config = load_config(path or settings.config_path)
    if settings.temp_dir is not None:
        config.runtime = replace(config.runtime, temp_dir=settings.temp_dir)
    return config


__all__ = ["Settings", "get_settings", "load_effective_config"]
