from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog

from .config import ClientConfig
from .logging import configure_logging
from .metrics import maybe_start_metrics, request_latency_seconds, requests_total
from .session import OpenAISession

if TYPE_CHECKING:
    from .completions import CompletionBuilder
    from .edits import EditBuilder
    from .images import ImageRequestSelector
    from .models import CompletionModel, EditModel
    from .schemas import Model

log = structlog.get_logger()


class OpenAIClient:
    """Owns one HTTP session; builders created here share its connection pool."""

    def __init__(self, cfg: ClientConfig | None = None, *, session: OpenAISession | None = None):
        self.cfg = cfg or ClientConfig()
        if self.cfg.configure_logging:
            configure_logging(
                level=self.cfg.log_level,
                fmt=self.cfg.log_format,
                secrets=[s for s in (self.cfg.api_key,) if s],
            )
        self.session = session or OpenAISession(
            api_key=self.cfg.api_key,
            organization=self.cfg.organization,
            base_url=self.cfg.api_base,
            timeout_seconds=self.cfg.timeout_seconds,
            max_attempts=self.cfg.max_attempts,
            backoff_initial_seconds=self.cfg.backoff_initial_seconds,
            backoff_max_seconds=self.cfg.backoff_max_seconds,
            circuit_breaker_failures=self.cfg.circuit_breaker_failures,
            circuit_breaker_reset_seconds=self.cfg.circuit_breaker_reset_seconds,
        )

    async def __aenter__(self) -> "OpenAIClient":
        maybe_start_metrics(enable=self.cfg.enable_metrics, bind=self.cfg.metrics_bind, port=self.cfg.metrics_port)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self.session.close()

    async def request(self, endpoint: str, method: str, path: str, **kwargs: Any) -> Any:
        start = time.time()
        try:
            with request_latency_seconds.labels(endpoint=endpoint).time():
                body = await self.session.request(method, path, endpoint=endpoint, **kwargs)
        except Exception as e:
            requests_total.labels(endpoint=endpoint, status="error").inc()
            log.exception("openai_request_error", endpoint=endpoint, error_kind=type(e).__name__, error=str(e))
            raise
        requests_total.labels(endpoint=endpoint, status="success").inc()
        log.info("openai_request", endpoint=endpoint, latency_seconds=round(time.time() - start, 3))
        return body

    async def stream(self, endpoint: str, path: str, *, json: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        try:
            async for event in self.session.stream(path, endpoint=endpoint, json=json):
                yield event
        except Exception as e:
            requests_total.labels(endpoint=endpoint, status="error").inc()
            log.exception("openai_stream_error", endpoint=endpoint, error_kind=type(e).__name__, error=str(e))
            raise
        requests_total.labels(endpoint=endpoint, status="success").inc()

    def completion(self, model: "CompletionModel | str") -> "CompletionBuilder":
        from .completions import build

        return build(model, client=self)

    def edit(self, model: "EditModel | str", instruction: str) -> "EditBuilder":
        from .edits import build

        return build(model, instruction, client=self)

    def images(self) -> "ImageRequestSelector":
        from .images import build

        return build(client=self)

    async def list_models(self) -> list["Model"]:
        from .models import list_models

        return await list_models(client=self)

    async def get_model(self, model_id: str) -> "Model":
        from .models import get_model

        return await get_model(model_id, client=self)


@asynccontextmanager
async def client_scope(client: OpenAIClient | None) -> AsyncIterator[OpenAIClient]:
    """Yield ``client``, or a private client built from the current environment and closed on exit."""
    if client is not None:
        yield client
        return
    async with OpenAIClient(ClientConfig()) as private:
        yield private
