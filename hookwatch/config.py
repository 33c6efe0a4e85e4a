"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class WebhooksConfig(BaseModel):
    secret: str = ""
    # Unsigned deliveries are accepted with a warning unless this is set
    require_signature: bool = False
    deduplicate_deliveries: bool = False
    capacity: int = 200
    bind: str = "0.0.0.0"
    port: int = 8420
    ingest_path: str = "/api/webhook"
    events_path: str = "/api/webhooks"
    # Empty means the events endpoint is open
    admin_token: str = ""

    @field_validator("capacity")
    @classmethod
    def _positive_capacity(cls, value: int) -> int:
        if value < 1:
            raise ValueError("capacity must be at least 1")
        return value

    @field_validator("ingest_path", "events_path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOOKWATCH_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    webhooks: WebhooksConfig = Field(default_factory=WebhooksConfig)
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML arrives as init kwargs; the environment wins over it
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def default_config_path() -> Path:
    """``config.yaml`` under HOOKWATCH_CONFIG_DIR or the per-user app dir."""
    config_dir = os.environ.get("HOOKWATCH_CONFIG_DIR") or click.get_app_dir("hookwatch")
    return Path(config_dir) / "config.yaml"


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file, with HOOKWATCH_* env vars on top."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("HOOKWATCH_CONFIG") or default_config_path()

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}

    return Settings(**yaml_data)
