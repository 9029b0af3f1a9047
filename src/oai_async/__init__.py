"""Async builder-style client for the OpenAI completions, edits, images and models endpoints."""

from __future__ import annotations

from . import completions, edits, images, models
from .client import OpenAIClient
from .config import ClientConfig
from .errors import (
    AuthenticationError,
    CircuitBreakerOpenError,
    ConfigurationError,
    DeserializationError,
    InvalidRequestError,
    OpenAIClientError,
    PermissionDeniedError,
    RateLimitError,
    RemoteServiceError,
    RequestAlreadySentError,
    RequestTimeoutError,
    ServiceUnavailableError,
    TransportError,
)
from .models import CompletionModel, EditModel, get_model, list_models
from .schemas import Completion, Edit, Images, Model

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "CircuitBreakerOpenError",
    "ClientConfig",
    "Completion",
    "CompletionModel",
    "ConfigurationError",
    "DeserializationError",
    "Edit",
    "EditModel",
    "Images",
    "InvalidRequestError",
    "Model",
    "OpenAIClient",
    "OpenAIClientError",
    "PermissionDeniedError",
    "RateLimitError",
    "RemoteServiceError",
    "RequestAlreadySentError",
    "RequestTimeoutError",
    "ServiceUnavailableError",
    "TransportError",
    "completions",
    "edits",
    "get_model",
    "images",
    "list_models",
    "models",
]
