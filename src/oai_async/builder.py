from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError, RequestAlreadySentError

if TYPE_CHECKING:
    from .client import OpenAIClient

_R = TypeVar("_R", bound=BaseModel)


def require_int(name: str, value: Any, *, minimum: int, maximum: int | None = None) -> int:
    # bool is an int subclass; True is not a token count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}.")
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ConfigurationError(f"{name} must be {bounds}, got {value}.")
    return value


def require_float(name: str, value: Any, *, low: float, high: float, low_inclusive: bool = True) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}.")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value!r}.")
    too_low = value < low if low_inclusive else value <= low
    if too_low or value > high:
        raise ConfigurationError(f"{name} must be between {low} and {high}, got {value}.")
    return float(value)


def require_str(name: str, value: Any, *, allow_empty: bool = True) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string, got {type(value).__name__}.")
    if not allow_empty and not value:
        raise ConfigurationError(f"{name} must be non-empty.")
    return value


def require_str_list(name: str, values: Any, *, max_items: int | None = None) -> list[str]:
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise ConfigurationError(f"{name} must be a list of strings.")
    if not values:
        raise ConfigurationError(f"{name} must be non-empty.")
    if max_items is not None and len(values) > max_items:
        raise ConfigurationError(f"{name} accepts at most {max_items} entries.")
    return [require_str(name, v, allow_empty=False) for v in values]


class RequestBuilder:
    """Accumulates request fields; one terminal call consumes it."""

    def __init__(self, *, client: "OpenAIClient | None" = None):
        self._client = client
        self._fields: dict[str, Any] = {}
        self._sent = False

    def _set(self, name: str, value: Any):
        self._ensure_open()
        self._fields[name] = value
        return self

    def _ensure_open(self) -> None:
        if self._sent:
            raise RequestAlreadySentError(f"This {type(self).__name__} has already been sent; build a new one.")

    def _consume(self) -> None:
        self._ensure_open()
        self._sent = True

    @property
    def sent(self) -> bool:
        return self._sent

    def _freeze(self, request_cls: type[_R], **fixed: Any) -> _R:
        try:
            return request_cls(**fixed, **self._fields)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {request_cls.__name__}: {e}") from e
