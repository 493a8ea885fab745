"""
Configuration for Ingestion Orchestrator

Settings are read from ``INGESTION_*`` environment variables, then from an
optional YAML file, then from explicit overrides (CLI flags).
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..core.exceptions import ConfigurationError
from ..models.batch import MAX_BATCH_SIZE

FETCHER_CHOICES = ("simulated", "http")


def _env(name: str, default: Any = None) -> Any:
    return lambda: os.getenv(name, default)


class Settings(BaseModel):
    """Runtime settings for the scheduler, the fetcher and the HTTP server."""

    model_config = ConfigDict(validate_default=True, extra="forbid")

    # Scheduling
    batch_size: int = Field(default_factory=_env("INGESTION_BATCH_SIZE", "3"))
    cooldown_seconds: float = Field(default_factory=_env("INGESTION_COOLDOWN_SECONDS", "5"))

    # External fetch
    fetcher: str = Field(default_factory=_env("INGESTION_FETCHER", "simulated"))
    fetch_latency_seconds: float = Field(default_factory=_env("INGESTION_FETCH_LATENCY_SECONDS", "1"))
    fetch_failure_rate: float = Field(default_factory=_env("INGESTION_FETCH_FAILURE_RATE", "0"))
    fetch_url_template: Optional[str] = Field(default_factory=_env("INGESTION_FETCH_URL_TEMPLATE"))
    fetch_timeout_seconds: Optional[float] = Field(
        default_factory=lambda: os.getenv("INGESTION_FETCH_TIMEOUT_SECONDS") or None
    )
    fetch_max_attempts: int = Field(default_factory=_env("INGESTION_FETCH_MAX_ATTEMPTS", "1"))
    fetch_retry_delay: float = Field(default_factory=_env("INGESTION_FETCH_RETRY_DELAY", "1"))

    # HTTP server
    host: str = Field(default_factory=_env("INGESTION_HOST", "0.0.0.0"))
    port: int = Field(default_factory=_env("PORT", "3000"))

    # Logging
    log_level: str = Field(default_factory=_env("INGESTION_LOG_LEVEL", "INFO"))
    log_structured: bool = Field(default_factory=_env("INGESTION_LOG_STRUCTURED", "true"))

    @field_validator("batch_size")
    @classmethod
    def _batch_size_in_range(cls, value: int) -> int:
        if not 1 <= value <= MAX_BATCH_SIZE:
            raise ValueError(f"must be between 1 and {MAX_BATCH_SIZE}")
        return value

    @field_validator("fetch_max_attempts")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("cooldown_seconds", "fetch_latency_seconds", "fetch_retry_delay")
    @classmethod
    def _not_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("fetch_failure_rate")
    @classmethod
    def _probability(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be between 0 and 1")
        return value

    @field_validator("fetcher")
    @classmethod
    def _known_fetcher(cls, value: str) -> str:
        value = value.lower()
        if value not in FETCHER_CHOICES:
            raise ValueError(f"must be one of {', '.join(FETCHER_CHOICES)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _http_needs_url(self) -> "Settings":
        if self.fetcher == "http" and not self.fetch_url_template:
            raise ValueError("fetch_url_template is required when fetcher is 'http'")
        return self


def _read_config_file(config_file: str) -> Dict[str, Any]:
    path = Path(config_file)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(str(path), f"cannot read file: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(str(path), f"invalid YAML: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Build settings from environment, an optional YAML file, and overrides.

    Overrides whose value is None are ignored so that unset CLI flags do not
    mask file or environment values.

    Raises:
        ConfigurationError: If any value is invalid
    """
    values: Dict[str, Any] = {}
    if config_file:
        values.update(_read_config_file(config_file))
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or "settings"
        raise ConfigurationError(key, first.get("msg", str(e)))
