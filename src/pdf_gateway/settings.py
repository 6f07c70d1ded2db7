from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import AppConfig, load_config
from .constants import DEFAULT_CONFIG_PATH, ENV_PREFIX


class Settings(BaseSettings):
    """Process settings sourced from the environment (and an optional ``.env``)."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    config_path: Path = DEFAULT_CONFIG_PATH
    remote_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices(f"{ENV_PREFIX}REMOTE_URL", "GOTENBERG_URL"),
    )
    port: int | None = Field(default=None, validation_alias=AliasChoices(f"{ENV_PREFIX}PORT", "PORT"))
    work_dir: Path | None = None
    enable_api: bool | None = None
    log_level: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


def apply_settings(config: AppConfig, settings: Settings) -> AppConfig:
    if settings.remote_url:
        config.remote.base_url = settings.remote_url.rstrip("/")
    if settings.port is not None:
        config.api.port = settings.port
    if settings.work_dir is not None:
        config.runtime.work_dir = settings.work_dir
    if settings.enable_api is not None:
        config.runtime.enable_api = settings.enable_api
    if settings.log_level:
        config.runtime.log_level = settings.log_level.upper()
    return config


def prepare_config(settings: Settings | None = None, config_path: Path | None = None) -> AppConfig:
    settings = settings or get_settings()
    config = load_config(config_path or settings.config_path)
    return apply_settings(config, settings)


__all__ = ["Settings", "apply_settings", "get_settings", "prepare_config"]
