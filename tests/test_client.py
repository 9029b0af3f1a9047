import httpx
import pytest
from prometheus_client import REGISTRY

from oai_async import OpenAIClient
from oai_async.client import client_scope
from oai_async.config import ClientConfig
from oai_async.errors import AuthenticationError
from oai_async.models import CompletionModel
from oai_async.session import OpenAISession


def _sample(endpoint: str, status: str) -> float:
    value = REGISTRY.get_sample_value("oai_requests_total", {"endpoint": endpoint, "status": status})
    return value or 0.0


def test_client_builds_session_from_config():
    cfg = ClientConfig(
        api_key="sk-test-key",
        organization="org-9",
        api_base="https://proxy.example/v1/",
        max_attempts=3,
        circuit_breaker_failures=4,
    )
    client = OpenAIClient(cfg)
    assert client.session.api_key == "sk-test-key"
    assert client.session.organization == "org-9"
    assert client.session.url("/completions") == "https://proxy.example/v1/completions"


@pytest.mark.asyncio
async def test_client_records_success_and_error_metrics():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/models"):
            return httpx.Response(200, json={"data": []})
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

    session = OpenAISession(api_key="sk-test-key", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    ok_before = _sample("models.list", "success")
    err_before = _sample("completions", "error")

    async with OpenAIClient(ClientConfig(api_key="sk-test-key"), session=session) as client:
        assert await client.list_models() == []
        with pytest.raises(AuthenticationError):
            await client.completion(CompletionModel.TEXT_ADA_001).prompt("x").complete()

    assert _sample("models.list", "success") == ok_before + 1
    assert _sample("completions", "error") == err_before + 1


@pytest.mark.asyncio
async def test_client_context_closes_session():
    closed = {"n": 0}

    class FakeSession:
        async def close(self):
            closed["n"] += 1

    async with OpenAIClient(ClientConfig(api_key="sk-test-key"), session=FakeSession()):
        pass
    assert closed["n"] == 1


@pytest.mark.asyncio
async def test_client_scope_reuses_given_client_without_closing_it():
    closed = {"n": 0}

    class FakeSession:
        async def close(self):
            closed["n"] += 1

    client = OpenAIClient(ClientConfig(api_key="sk-test-key"), session=FakeSession())
    async with client_scope(client) as scoped:
        assert scoped is client
    assert closed["n"] == 0


@pytest.mark.asyncio
async def test_client_scope_reads_environment_when_no_client(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-scoped-key-1")
    monkeypatch.setenv("OPENAI_ORGANIZATION", "org-env")
    async with client_scope(None) as scoped:
        assert scoped.cfg.api_key == "sk-scoped-key-1"
        assert scoped.session.organization == "org-env"
    assert scoped.session._client.is_closed
