from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import httpx
import structlog

from .breaker import CircuitBreaker, backoff_delay
from .config import DEFAULT_API_BASE, read_api_key, validate_api_key
from .errors import (
    AuthenticationError,
    DeserializationError,
    InvalidRequestError,
    PermissionDeniedError,
    RateLimitError,
    RemoteServiceError,
    RequestTimeoutError,
    ServiceUnavailableError,
    TransportError,
)
from .metrics import retries_total
from .schemas import ErrorEnvelope
from .streaming import iter_sse_events

log = structlog.get_logger()

_STATUS_ERRORS: dict[int, type[RemoteServiceError]] = {
    400: InvalidRequestError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: InvalidRequestError,
    409: InvalidRequestError,
    422: InvalidRequestError,
}


def _retry_after_seconds(resp: httpx.Response) -> int | None:
    retry_after = resp.headers.get("retry-after")
    return int(retry_after) if retry_after and retry_after.isdigit() else None


def remote_error(resp: httpx.Response) -> RemoteServiceError:
    """Build the taxonomy error for an HTTP error response, keeping the remote message verbatim."""
    body = None
    try:
        body = ErrorEnvelope.model_validate(resp.json()).error
    except ValueError:
        # Not JSON, or JSON without the error envelope.
        pass

    message = body.message if body is not None and body.message else (resp.text[:500] or resp.reason_phrase)
    fields: dict[str, Any] = {}
    if body is not None:
        fields = {
            "error_type": body.type,
            "param": body.param,
            "code": None if body.code is None else str(body.code),
        }

    status = resp.status_code
    if status == 429:
        return RateLimitError(status, message, retry_after_seconds=_retry_after_seconds(resp), **fields)
    if status >= 500:
        return ServiceUnavailableError(status, message, **fields)
    return _STATUS_ERRORS.get(status, RemoteServiceError)(status, message, **fields)


class OpenAISession:
    """
    Thin wrapper around ``httpx.AsyncClient`` for the OpenAI REST API.

    Every call resolves the API key first, so a missing credential fails
    before anything goes on the wire. Retries and the circuit breaker are
    off unless ``max_attempts > 1`` / ``circuit_breaker_failures > 0``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        organization: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str = DEFAULT_API_BASE,
        timeout_seconds: float = 60,
        max_attempts: int = 1,
        backoff_initial_seconds: float = 0.5,
        backoff_max_seconds: float = 8.0,
        circuit_breaker_failures: int = 0,
        circuit_breaker_reset_seconds: float = 30.0,
        sleeper: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.api_key = api_key
        self.organization = organization
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._base_url = base_url.rstrip("/")
        self._max_attempts = max(1, max_attempts)
        self._backoff_initial_seconds = max(0.0, backoff_initial_seconds)
        self._backoff_max_seconds = max(self._backoff_initial_seconds, backoff_max_seconds)
        self._sleep: Callable[[float], Awaitable[None]] = sleeper or asyncio.sleep
        self._breaker = CircuitBreaker(circuit_breaker_failures, circuit_breaker_reset_seconds, clock or time.monotonic)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenAISession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        key = read_api_key() if self.api_key is None else validate_api_key(self.api_key)
        headers = {"Authorization": f"Bearer {key}"}
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return headers

    def _delay(self, attempt: int) -> float:
        return backoff_delay(attempt, initial=self._backoff_initial_seconds, maximum=self._backoff_max_seconds)

    def _is_last(self, attempt: int) -> bool:
        return attempt >= self._max_attempts - 1

    async def _backoff(self, endpoint: str, reason: str, seconds: float) -> None:
        retries_total.labels(endpoint=endpoint, reason=reason).inc()
        log.debug("openai_retry", endpoint=endpoint, reason=reason, sleep_seconds=seconds)
        await self._sleep(seconds)

    def url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        endpoint: str | None = None,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Send one API call and return the decoded JSON body."""
        endpoint = endpoint or path
        headers = self._headers()
        self._breaker.check()
        url = self.url(path)

        for attempt in range(self._max_attempts):
            try:
                resp = await self._client.request(method, url, headers=headers, json=json, data=data, files=files)
            except httpx.TimeoutException as e:
                self._breaker.record_failure()
                if self._is_last(attempt):
                    raise RequestTimeoutError(f"Request to {endpoint} timed out.") from e
                await self._backoff(endpoint, "timeout", self._delay(attempt))
                continue
            except httpx.HTTPError as e:
                self._breaker.record_failure()
                if self._is_last(attempt):
                    raise TransportError(f"Request to {endpoint} failed: {e}") from e
                await self._backoff(endpoint, "transport", self._delay(attempt))
                continue

            if resp.status_code == 429:
                self._breaker.record_failure()
                err = remote_error(resp)
                if self._is_last(attempt):
                    raise err
                retry_seconds = _retry_after_seconds(resp)
                sleep_for = retry_seconds if retry_seconds is not None else self._delay(attempt)
                await self._backoff(endpoint, "rate_limit", sleep_for)
                continue

            if 500 <= resp.status_code <= 599:
                self._breaker.record_failure()
                if self._is_last(attempt):
                    log.warning("openai_upstream_5xx", endpoint=endpoint, status_code=resp.status_code, body=resp.text[:500])
                    raise remote_error(resp)
                await self._backoff(endpoint, "server_error", self._delay(attempt))
                continue

            if resp.status_code >= 400:
                raise remote_error(resp)
            break
        else:  # pragma: no cover
            raise TransportError(f"Request to {endpoint} failed after retries.")

        self._breaker.record_success()
        try:
            body = resp.json()
        except ValueError as e:
            raise DeserializationError(f"Response from {endpoint} is not valid JSON.") from e
        log.debug("openai_request_ok", endpoint=endpoint, status_code=resp.status_code, attempts=attempt + 1)
        return body

    async def stream(
        self,
        path: str,
        *,
        endpoint: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """POST ``json`` and yield each decoded server-sent event until ``[DONE]``."""
        endpoint = endpoint or path
        headers = self._headers()
        self._breaker.check()
        url = self.url(path)

        for attempt in range(self._max_attempts):
            started = False
            try:
                async with self._client.stream("POST", url, headers=headers, json=json) as resp:
                    if resp.status_code >= 400:
                        await resp.aread()
                        err = remote_error(resp)
                        retryable = resp.status_code == 429 or resp.status_code >= 500
                        if retryable:
                            self._breaker.record_failure()
                        if not retryable or self._is_last(attempt):
                            raise err
                        retry_seconds = _retry_after_seconds(resp) if resp.status_code == 429 else None
                        sleep_for = retry_seconds if retry_seconds is not None else self._delay(attempt)
                        await self._backoff(endpoint, "rate_limit" if resp.status_code == 429 else "server_error", sleep_for)
                        continue

                    async for event in iter_sse_events(resp.aiter_lines()):
                        started = True
                        yield event
                    self._breaker.record_success()
                    return
            except httpx.TimeoutException as e:
                self._breaker.record_failure()
                if started or self._is_last(attempt):
                    raise RequestTimeoutError(f"Stream from {endpoint} timed out.") from e
                await self._backoff(endpoint, "timeout", self._delay(attempt))
            except httpx.HTTPError as e:
                self._breaker.record_failure()
                if started or self._is_last(attempt):
                    raise TransportError(f"Stream from {endpoint} failed: {e}") from e
                await self._backoff(endpoint, "transport", self._delay(attempt))

        raise TransportError(f"Stream from {endpoint} failed after retries.")  # pragma: no cover
