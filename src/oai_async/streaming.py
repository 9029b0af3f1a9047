from __future__ import annotations

import json
from typing import Any, AsyncIterator

from .errors import DeserializationError

DONE_SENTINEL = "[DONE]"


def sse_data(line: str) -> str | None:
    """Return the payload of an SSE ``data:`` line, or None for anything else."""
    if not line or not line.startswith("data:"):
        return None
    raw = line[len("data:") :].strip()
    return raw or None


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[dict[str, Any]]:
    async for line in lines:
        raw = sse_data(line)
        if raw is None:
            continue
        if raw == DONE_SENTINEL:
            return
        try:
            event = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DeserializationError("Failed to decode streamed event JSON.") from e
        if not isinstance(event, dict):
            raise DeserializationError("Streamed event is not a JSON object.")
        yield event
