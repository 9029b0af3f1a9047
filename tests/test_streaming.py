import pytest

from oai_async.errors import DeserializationError
from oai_async.streaming import iter_sse_events, sse_data


def test_sse_data_extracts_payload():
    assert sse_data('data: {"a": 1}') == '{"a": 1}'
    assert sse_data("data:[DONE]") == "[DONE]"
    assert sse_data("event: ping") is None
    assert sse_data("data:   ") is None
    assert sse_data("") is None


async def _lines(*lines):
    for line in lines:
        yield line


@pytest.mark.asyncio
async def test_iter_sse_events_stops_at_done():
    events = [e async for e in iter_sse_events(_lines('data: {"n": 1}', "", 'data: {"n": 2}', "data: [DONE]", 'data: {"n": 3}'))]
    assert events == [{"n": 1}, {"n": 2}]


@pytest.mark.asyncio
async def test_iter_sse_events_rejects_non_object_events():
    with pytest.raises(DeserializationError):
        async for _ in iter_sse_events(_lines("data: [1, 2]")):
            pass
