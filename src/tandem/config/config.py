# src/tandem/config/config.py
"""Configuration system for tandem."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal, Self

from pydantic import BaseModel, Field, field_validator


def _env_field(default: Any, env: str, **kwargs: Any) -> Any:
    """Declare a field that can be overridden by the ``env`` variable."""
    return Field(default=default, json_schema_extra={"env": env}, **kwargs)


class EnvModel(BaseModel):
    """Base model whose fields are populated from environment variables."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> Self:
        values: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            extra = field.json_schema_extra
            env = extra.get("env") if isinstance(extra, dict) else None
            if isinstance(env, str) and env in environ:
                values[name] = environ[env]
        return cls(**values)


class SchedulerConfig(EnvModel):
    """Defaults for the bounded scheduler and the combinators built on it."""

    default_concurrency: int = _env_field(4, "TANDEM_CONCURRENCY", ge=1)
    mode: Literal["fail_fast", "drain"] = _env_field(
        "fail_fast", "TANDEM_SCHEDULER_MODE"
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value


class SystemConfig(EnvModel):
    """Logging settings."""

    log_level: str = _env_field("INFO", "TANDEM_LOG_LEVEL")
    log_format: Literal["plain", "rich", "json"] = _env_field(
        "plain", "TANDEM_LOG_FORMAT"
    )
    log_include_trace: bool = _env_field(False, "TANDEM_LOG_INCLUDE_TRACE")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().upper()
            if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
                raise ValueError(f"unknown log level: {value}")
        return value

    @field_validator("log_format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class TandemConfig(BaseModel):
    """Main configuration class."""

    scheduler: SchedulerConfig = SchedulerConfig()
    system: SystemConfig = SystemConfig()

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> TandemConfig:
        """Load configuration from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            scheduler=SchedulerConfig.from_env(env),
            system=SystemConfig.from_env(env),
        )


# Global configuration instance
config = TandemConfig.load()
