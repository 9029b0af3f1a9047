from __future__ import annotations

import math
import os

from pydantic import BaseModel, Field

from .errors import ConfigurationError

API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_API_BASE = "https://api.openai.com/v1"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_number(name: str, default: str, cast: type[int] | type[float] = float) -> int | float:
    raw = os.getenv(name, default).strip()
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a {cast.__name__}, got {raw!r}.") from e
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {raw!r}.")
    return value


def validate_api_key(value: str | None) -> str:
    if value is None:
        raise ConfigurationError(f"{API_KEY_ENV} is not set.")
    if not value:
        raise ConfigurationError(f"{API_KEY_ENV} is empty.")
    if any(ch.isspace() or not ch.isprintable() for ch in value) or not value.isascii():
        raise ConfigurationError(f"{API_KEY_ENV} is malformed.")
    return value


def read_api_key() -> str:
    """Read the API key from the environment at the point of use."""
    return validate_api_key(os.getenv(API_KEY_ENV))


class ClientConfig(BaseModel):
    # Credentials
    api_key: str | None = Field(default_factory=lambda: os.getenv(API_KEY_ENV))
    organization: str | None = Field(default_factory=lambda: os.getenv("OPENAI_ORGANIZATION"))
    api_base: str = Field(default_factory=lambda: os.getenv("OPENAI_API_BASE", DEFAULT_API_BASE))

    # HTTP behavior
    timeout_seconds: float = Field(default_factory=lambda: _env_number("OAI_TIMEOUT_SECONDS", "60"))
    max_attempts: int = Field(default_factory=lambda: _env_number("OAI_MAX_ATTEMPTS", "1", int))
    backoff_initial_seconds: float = Field(
        default_factory=lambda: _env_number("OAI_BACKOFF_INITIAL_SECONDS", "0.5")
    )
    backoff_max_seconds: float = Field(
        default_factory=lambda: _env_number("OAI_BACKOFF_MAX_SECONDS", "8.0")
    )
    circuit_breaker_failures: int = Field(
        default_factory=lambda: _env_number("OAI_CIRCUIT_BREAKER_FAILURES", "0", int)
    )
    circuit_breaker_reset_seconds: float = Field(
        default_factory=lambda: _env_number("OAI_CIRCUIT_BREAKER_RESET_SECONDS", "30")
    )

    # Observability
    configure_logging: bool = Field(default_factory=lambda: _env_flag("OAI_CONFIGURE_LOGGING"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = Field(default_factory=lambda: os.getenv("LOG_FORMAT", "json"))
    enable_metrics: bool = Field(default_factory=lambda: _env_flag("ENABLE_METRICS"))
    metrics_bind: str = Field(default_factory=lambda: os.getenv("METRICS_BIND", "127.0.0.1"))
    metrics_port: int = Field(default_factory=lambda: _env_number("METRICS_PORT", "9109", int))

    def require_api_key(self) -> str:
        return validate_api_key(self.api_key)
