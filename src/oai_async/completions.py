"""
Completion request builder.

    completion = await (
        completions.build(CompletionModel.TEXT_DAVINCI_003)
        .prompt("Ice cream or cookies?")
        .max_tokens(32)
        .complete()
    )
    print(completion.text)

Setters validate their argument immediately and raise ``ConfigurationError``
without touching the network. ``complete()`` and ``stream()`` consume the
builder; any later call raises ``RequestAlreadySentError``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .builder import RequestBuilder, require_float, require_int, require_str, require_str_list
from .client import client_scope
from .errors import ConfigurationError
from .models import CompletionModel, model_name
from .schemas import Completion, CompletionRequest, parse_as

if TYPE_CHECKING:
    from .client import OpenAIClient

MAX_STOP_SEQUENCES = 4


class CompletionBuilder(RequestBuilder):
    def __init__(self, model: CompletionModel | str, *, client: "OpenAIClient | None" = None):
        super().__init__(client=client)
        self.model = model_name(model, CompletionModel)

    def prompt(self, text: str) -> "CompletionBuilder":
        return self._set("prompt", require_str("prompt", text))

    def prompts(self, texts: Sequence[str]) -> "CompletionBuilder":
        """Batch prompt; replaces any single prompt set earlier."""
        return self._set("prompt", require_str_list("prompts", texts))

    def suffix(self, text: str) -> "CompletionBuilder":
        return self._set("suffix", require_str("suffix", text))

    def max_tokens(self, count: int) -> "CompletionBuilder":
        """Upper bound on generated tokens. Prompt tokens plus this must fit the model's context."""
        return self._set("max_tokens", require_int("max_tokens", count, minimum=1))

    def temperature(self, value: float) -> "CompletionBuilder":
        return self._set("temperature", require_float("temperature", value, low=0.0, high=2.0))

    def top_p(self, value: float) -> "CompletionBuilder":
        return self._set("top_p", require_float("top_p", value, low=0.0, high=1.0, low_inclusive=False))

    def n(self, count: int) -> "CompletionBuilder":
        return self._set("n", require_int("n", count, minimum=1))

    def logprobs(self, count: int) -> "CompletionBuilder":
        return self._set("logprobs", require_int("logprobs", count, minimum=0, maximum=5))

    def echo(self, enabled: bool = True) -> "CompletionBuilder":
        if not isinstance(enabled, bool):
            raise ConfigurationError("echo must be a bool.")
        return self._set("echo", enabled)

    def stop(self, sequence: str) -> "CompletionBuilder":
        return self._set("stop", require_str("stop", sequence, allow_empty=False))

    def stops(self, sequences: Sequence[str]) -> "CompletionBuilder":
        return self._set("stop", require_str_list("stops", sequences, max_items=MAX_STOP_SEQUENCES))

    def presence_penalty(self, value: float) -> "CompletionBuilder":
        return self._set("presence_penalty", require_float("presence_penalty", value, low=-2.0, high=2.0))

    def frequency_penalty(self, value: float) -> "CompletionBuilder":
        return self._set("frequency_penalty", require_float("frequency_penalty", value, low=-2.0, high=2.0))

    def best_of(self, count: int) -> "CompletionBuilder":
        """Server-side candidates; must be >= n when both are set. Cannot be streamed."""
        return self._set("best_of", require_int("best_of", count, minimum=1))

    def logit_bias(self, bias: Mapping[int, int]) -> "CompletionBuilder":
        if not isinstance(bias, Mapping):
            raise ConfigurationError("logit_bias must be a mapping of token id to bias.")
        normalized: dict[str, int] = {}
        for token, weight in bias.items():
            token_id = int(token) if isinstance(token, str) and token.isdigit() else token
            require_int("logit_bias token id", token_id, minimum=0)
            normalized[str(token_id)] = require_int("logit_bias value", weight, minimum=-100, maximum=100)
        return self._set("logit_bias", normalized)

    def user(self, identifier: str) -> "CompletionBuilder":
        return self._set("user", require_str("user", identifier, allow_empty=False))

    def to_request(self) -> CompletionRequest:
        return self._freeze(CompletionRequest, model=self.model)

    def payload(self) -> dict[str, Any]:
        """JSON body ``complete()`` would send, without sending it."""
        return self.to_request().to_payload()

    async def complete(self) -> Completion:
        request = self.to_request()
        self._consume()
        async with client_scope(self._client) as client:
            body = await client.request("completions", "POST", "/completions", json=request.to_payload())
        return parse_as(Completion, body)

    def stream(self) -> AsyncIterator[Completion]:
        """Validate and consume the builder now; the returned iterator sends the request when first awaited."""
        request = self._freeze(CompletionRequest, model=self.model, stream=True)
        self._consume()
        return self._stream_chunks(request)

    async def _stream_chunks(self, request: CompletionRequest) -> AsyncIterator[Completion]:
        async with client_scope(self._client) as client:
            async for event in client.stream("completions", "/completions", json=request.to_payload()):
                yield parse_as(Completion, event)


def build(model: CompletionModel | str, *, client: "OpenAIClient | None" = None) -> CompletionBuilder:
    return CompletionBuilder(model, client=client)
