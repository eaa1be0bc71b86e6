"""Configuration record used to build integrations."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError


class LoggingConfig(BaseModel):
    level: str = Field(default="info")
    json_logs: bool = Field(default=False)
    log_file: str | None = None


class StoreConfig(BaseModel):
    kind: Literal["file", "memory", "none"] = "file"
    path: str | None = None
    ttl_seconds: float = Field(default=24 * 60 * 60, gt=0)


class IntegrationConfig(BaseModel):
    name: str
    version: str
    synchronized: bool = False
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("name")
    def _validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("integration name can't be empty")
        return value


def load_config(path: Path) -> IntegrationConfig:
    """Load and validate an integration YAML configuration file."""

    if not path.exists():
        raise ConfigurationError(f"Configuration file '{path}' does not exist")

    with path.open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    try:
        return IntegrationConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration file '{path}': {exc}") from exc


__all__ = ["IntegrationConfig", "LoggingConfig", "StoreConfig", "load_config"]
