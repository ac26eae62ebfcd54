"""
Configuration loader with Pydantic validation.

Supports:
- Environment variables (one per setting, same upper-case name)
- YAML file loading
- Command line overrides
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(ValueError):
    """Raised when the monitor cannot be configured or constructed."""


class ProbeKind(str, Enum):
    """Strategy used to check the target."""

    CHAT = "chat"
    EMBEDDING = "embedding"
    COLLECTION = "collection"


class MonitorSettings(BaseSettings):
    """
    Complete monitor configuration.

    The alerting tunables (failure/missing tolerance, schedule, re-alert
    interval, success frequency, group) only take effect when
    ``cronitor_api_key`` is set.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    # Cronitor
    cronitor_base_url: str = "https://cronitor.link"
    cronitor_api_key: str | None = None
    cronitor_api_url: str = "https://cronitor.io/api/monitors"
    monitor_name: str

    # Target
    server_url: str = ""
    endpoint_type: ProbeKind = ProbeKind.CHAT
    model_name: str = ""
    app_env: str = "production"
    timeout_seconds: float = 10.0

    # Alerting (requires API key)
    min_success_freq: int | None = Field(default=None, gt=0)  # minutes
    schedule: str | None = None
    consecutive_failures_for_alert: int | None = Field(default=None, ge=0)
    consecutive_missing_for_alert: int | None = Field(default=None, ge=0)  # requires schedule
    realert_interval_hours: int | None = Field(default=None, gt=0)
    monitor_group: str | None = None

    # Collection runner probe
    collection_path: str | None = None
    environment_path: str | None = None
    delay_request_ms: int | None = Field(default=None, ge=0)
    collection_runner: str = "newman"
    collection_deadline_seconds: float = Field(default=600.0, gt=0)

    # Continuous mode: 0 runs a single attempt
    interval_seconds: float = 0.0

    # Observability
    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    metrics_port: int | None = None

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v

    @field_validator("interval_seconds")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v != 0 and v < 1:
            raise ValueError("interval_seconds must be 0 (run once) or at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log_level: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in {"json", "text"}:
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @field_validator("cronitor_api_key", "schedule", "monitor_group", "collection_path", "environment_path")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        # Empty env values mean unset
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_probe_fields(self) -> "MonitorSettings":
        if self.endpoint_type == ProbeKind.COLLECTION:
            if not self.collection_path:
                raise ValueError("collection_path is required for the collection probe")
        else:
            if not self.server_url:
                raise ValueError("server_url is required for chat/embedding probes")
            if not self.model_name:
                raise ValueError("model_name is required for chat/embedding probes")
        return self

    @property
    def alerting_enabled(self) -> bool:
        return bool(self.cronitor_api_key)

    @property
    def continuous(self) -> bool:
        return self.interval_seconds > 0


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {path}")
    return data


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> MonitorSettings:
    """
    Load configuration.

    Priority (highest to lowest):
    1. Explicit overrides (command line flags)
    2. Specified config file
    3. Environment variables
    4. Defaults
    """
    config_dict: dict[str, Any] = {}

    if config_path:
        config_dict = load_yaml_config(Path(config_path))

    if overrides:
        config_dict.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return MonitorSettings(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
