from __future__ import annotations


class OpenAIClientError(Exception):
    """Base error for client failures."""


class ConfigurationError(OpenAIClientError):
    pass


class RequestAlreadySentError(OpenAIClientError):
    """A builder was used again after its terminal call."""


class TransportError(OpenAIClientError):
    """Network-level failure before a well-formed HTTP response arrived."""


class RequestTimeoutError(TransportError):
    pass


class DeserializationError(OpenAIClientError):
    """Response body does not match the expected result shape."""


class RemoteServiceError(OpenAIClientError):
    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        error_type: str | None = None,
        param: str | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error_type = error_type
        self.param = param
        self.code = code

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class InvalidRequestError(RemoteServiceError):
    pass


class AuthenticationError(RemoteServiceError):
    pass


class PermissionDeniedError(RemoteServiceError):
    pass


class RateLimitError(RemoteServiceError):
    def __init__(
        self,
        status_code: int = 429,
        message: str = "Rate limited",
        *,
        retry_after_seconds: int | None = None,
        error_type: str | None = None,
        param: str | None = None,
        code: str | None = None,
    ):
        super().__init__(status_code, message, error_type=error_type, param=param, code=code)
        self.retry_after_seconds = retry_after_seconds


class ServiceUnavailableError(RemoteServiceError):
    """The remote service answered with a 5xx status."""


class CircuitBreakerOpenError(OpenAIClientError):
    def __init__(self, retry_after_seconds: int | None = None, message: str = "Remote service temporarily unavailable"):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
