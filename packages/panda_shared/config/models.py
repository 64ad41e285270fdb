"""Typed configuration models for panda client runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "panda" / "panda.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration for client processes."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "panda-client"
    environment: str = "dev"


class NodeSettings(BaseModel):
    """Connection settings for the remote node."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str = "http://localhost:2020"
    timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("endpoint", mode="before")
    @classmethod
    def _validate_endpoint(cls, value: object) -> object:
        """Require a non-empty node endpoint."""
        if not isinstance(value, str):
            return value
        normalized = value.strip()
        if normalized == "":
            raise ValueError("endpoint must be non-empty")
        return normalized


class PandaSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="PANDA_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
        yaml_file=DEFAULT_CONFIG_PATH,
        yaml_file_encoding="utf-8",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    node: NodeSettings = Field(default_factory=NodeSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
        )
