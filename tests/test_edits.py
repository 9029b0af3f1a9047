import json

import httpx
import pytest

from oai_async import edits
from oai_async.client import OpenAIClient
from oai_async.config import ClientConfig
from oai_async.errors import ConfigurationError, RequestAlreadySentError
from oai_async.models import CompletionModel, EditModel
from oai_async.session import OpenAISession

EDIT = {
    "object": "edit",
    "created": 1670000000,
    "choices": [{"text": "I'm bad at spelling, hopefully AI can fix this.\n", "index": 0}],
    "usage": {"prompt_tokens": 25, "completion_tokens": 30, "total_tokens": 55},
}


def _client(handler) -> OpenAIClient:
    session = OpenAISession(
        api_key="sk-test-key",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        base_url="https://example.test/v1",
    )
    return OpenAIClient(ClientConfig(api_key="sk-test-key"), session=session)


@pytest.mark.asyncio
async def test_edit_posts_instruction_and_input():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/edits"
        assert json.loads(request.content) == {
            "model": "text-davinci-edit-001",
            "instruction": "Fix the spelling and grammar mistakes",
            "input": "Im bad at splling, hopefuly AI can fox this.",
            "temperature": 0.0,
            "n": 1,
        }
        return httpx.Response(200, json=EDIT)

    async with _client(handler) as client:
        result = await (
            client.edit(EditModel.TEXT_DAVINCI_EDIT_001, "Fix the spelling and grammar mistakes")
            .input("Im bad at splling, hopefuly AI can fox this.")
            .temperature(0)
            .n(1)
            .edit()
        )
    assert result.text == EDIT["choices"][0]["text"]
    assert result.usage is not None and result.usage.total_tokens == 55


def test_edit_requires_instruction():
    with pytest.raises(ConfigurationError):
        edits.build(EditModel.TEXT_DAVINCI_EDIT_001, "")


def test_edit_rejects_completion_model():
    with pytest.raises(ConfigurationError):
        edits.build(CompletionModel.TEXT_DAVINCI_003, "Fix it")


@pytest.mark.asyncio
async def test_edit_builder_is_single_use():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=EDIT)

    async with _client(handler) as client:
        builder = edits.build(EditModel.TEXT_DAVINCI_EDIT_001, "Fix it", client=client).input("x")
        await builder.edit()
        with pytest.raises(RequestAlreadySentError):
            await builder.edit()
