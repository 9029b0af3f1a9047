from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .builder import RequestBuilder, require_float, require_int, require_str
from .client import client_scope
from .models import EditModel, model_name
from .schemas import Edit, EditRequest, parse_as

if TYPE_CHECKING:
    from .client import OpenAIClient


class EditBuilder(RequestBuilder):
    """Edit request: the model rewrites ``input`` following ``instruction``."""

    def __init__(self, model: EditModel | str, instruction: str, *, client: "OpenAIClient | None" = None):
        super().__init__(client=client)
        self.model = model_name(model, EditModel)
        self.instruction = require_str("instruction", instruction, allow_empty=False)

    def input(self, text: str) -> "EditBuilder":
        return self._set("input", require_str("input", text))

    def n(self, count: int) -> "EditBuilder":
        return self._set("n", require_int("n", count, minimum=1))

    def temperature(self, value: float) -> "EditBuilder":
        return self._set("temperature", require_float("temperature", value, low=0.0, high=2.0))

    def top_p(self, value: float) -> "EditBuilder":
        return self._set("top_p", require_float("top_p", value, low=0.0, high=1.0, low_inclusive=False))

    def to_request(self) -> EditRequest:
        return self._freeze(EditRequest, model=self.model, instruction=self.instruction)

    def payload(self) -> dict[str, Any]:
        return self.to_request().to_payload()

    async def edit(self) -> Edit:
        request = self.to_request()
        self._consume()
        async with client_scope(self._client) as client:
            body = await client.request("edits", "POST", "/edits", json=request.to_payload())
        return parse_as(Edit, body)


def build(model: EditModel | str, instruction: str, *, client: "OpenAIClient | None" = None) -> EditBuilder:
    return EditBuilder(model, instruction, client=client)
