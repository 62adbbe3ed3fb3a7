"""Configuration loading utilities for the imgix source automation."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError

DEFAULT_API_URL = "https://api.imgix.com"
ACCESS_KEY_ENV = "IMGIX_API_KEY"
API_URL_ENV = "IMGIX_API_URL"


class ConvergenceConfig(BaseModel):
    initial_delay_seconds: float = Field(
        5.0,
        description="Wait after a create or update before the first status poll",
    )
    poll_interval_seconds: float = Field(
        10.0,
        description="Fixed delay between two deployment status polls",
    )
    create_timeout_seconds: float = Field(
        1800.0,
        description="Deadline for a freshly created source to finish deploying",
    )
    update_timeout_seconds: float = Field(
        1800.0,
        description="Deadline for an updated source to finish deploying",
    )
    read_timeout_seconds: float = Field(
        1800.0,
        description="Deadline for reads that wait for the deployment to settle",
    )
    transient_retry_delay_seconds: float = Field(
        3.0,
        description="Delay between attempts when the origin access key is not yet visible",
    )
    transient_retry_timeout_seconds: float = Field(
        10.0,
        description="Overall budget for retrying the origin access key race",
    )

    @field_validator("*")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Convergence timings must be positive numbers of seconds")
        return value


class ImgixConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_key: str = Field(
        default="",
        description="imgix API key, falls back to the IMGIX_API_KEY environment variable",
        alias="api_key",
    )
    api_base_url: str = Field(DEFAULT_API_URL, description="Base URL of the imgix management API")
    request_timeout_seconds: float = Field(30.0, description="Timeout applied to every HTTP call")
    convergence: ConvergenceConfig = Field(default_factory=ConvergenceConfig)

    @model_validator(mode="before")
    @classmethod
    def _strip_placeholders(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        values = dict(values)
        for key in ("access_key", "api_key", "api_base_url"):
            value = values.get(key)
            if isinstance(value, str):
                stripped = value.strip()
                if not stripped or (stripped.startswith("<") and stripped.endswith(">")):
                    values.pop(key)
                else:
                    values[key] = stripped
        return values

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("api_base_url must be an http(s) URL")
        return value.rstrip("/")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ImgixConfig":
        if not isinstance(raw, dict):
            raise ConfigurationError("Configuration must be a mapping")
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    @classmethod
    def from_yaml(cls, path: Path) -> "ImgixConfig":
        data = yaml.safe_load(path.read_text()) or {}
        return cls.from_dict(data)


def load_config(path: Optional[str | Path] = None, environ: Optional[Dict[str, str]] = None) -> ImgixConfig:
    """Load configuration from an optional YAML file, filling gaps from the environment."""
    env = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path).expanduser().resolve()
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        raw = yaml.safe_load(config_path.read_text()) or {}

    config = ImgixConfig.from_dict(raw)
    if not config.access_key and env.get(ACCESS_KEY_ENV):
        config.access_key = env[ACCESS_KEY_ENV].strip()
    if "api_base_url" not in config.model_fields_set and env.get(API_URL_ENV):
        config.api_base_url = env[API_URL_ENV].strip().rstrip("/")
    return config
