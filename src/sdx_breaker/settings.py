from __future__ import annotations

from collections.abc import Callable

import structlog
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sdx_breaker.circuit_breaker import (
    CircuitBreakerConfig,
    Counts,
    StateChangeHook,
)
from sdx_breaker.logging import configure_structlog, get_log_level_value

DEFAULT_ENV_PREFIX = "SDX_BREAKER_"


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Environment-driven settings for one circuit breaker.

    Zero values keep the breaker defaults: one half-open probe, no
    closed-state interval and a 60 second open timeout.
    """

    model_config = prefixed_settings_config(DEFAULT_ENV_PREFIX)

    name: str = ""
    max_requests: int = 0
    interval_seconds: float = 0.0
    timeout_seconds: float = 0.0
    log_level: str = "INFO"

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().upper()
            get_log_level_value(normalized)
            return normalized
        return value

    @model_validator(mode="after")
    def _validate_breaker_settings(self) -> BreakerSettings:
        if self.max_requests < 0:
            raise ValueError("max_requests must be >= 0")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        if self.timeout_seconds < 0:
            raise ValueError("timeout_seconds must be >= 0")
        return self

    def to_config(
        self,
        *,
        ready_to_trip: Callable[[Counts], bool] | None = None,
        is_successful: Callable[[Exception | None], bool] | None = None,
        on_state_change: StateChangeHook | None = None,
    ) -> CircuitBreakerConfig:
        """Build a breaker config, attaching optional policy callables."""
        return CircuitBreakerConfig(
            name=self.name,
            max_requests=self.max_requests,
            interval=self.interval_seconds,
            timeout=self.timeout_seconds,
            ready_to_trip=ready_to_trip,
            is_successful=is_successful,
            on_state_change=on_state_change,
        )

    def configure_logging(self) -> structlog.stdlib.BoundLogger:
        """Configure structlog at ``log_level``, tagging events with the name."""
        static_fields = {"breaker": self.name} if self.name else None
        return configure_structlog(
            log_level=self.log_level,
            static_fields=static_fields,
        )
