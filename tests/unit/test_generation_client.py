from __future__ import annotations

import asyncio

import httpx
import pytest

from agentdesk.core.config.schema import OpenAIProviderConfig
from agentdesk.core.providers.base import ChatMessage, ProviderAdapter, ProviderRequest, ProviderResponse
from agentdesk.core.providers.client import GenerationClient
from agentdesk.core.providers.openai_compatible import OpenAICompatibleAdapter
from agentdesk.core.runtime.errors import UpstreamError, classify_error
from agentdesk.core.telemetry.logging import get_logger


class SlowAdapter(ProviderAdapter):
    name = "slow"

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        await asyncio.sleep(5)
        return ProviderResponse(provider=self.name, model=request.model, output_text="late", raw={})

    def configured(self) -> bool:
        return True


class FailingAdapter(ProviderAdapter):
    name = "failing"

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        raise self.exc

    def configured(self) -> bool:
        return True


def _client(adapter: ProviderAdapter | None, timeout: float = 1.0) -> GenerationClient:
    return GenerationClient(
        adapter,
        default_model="test-model",
        default_temperature=0.7,
        default_max_tokens=100,
        timeout_seconds=timeout,
        logger=get_logger("test.generation"),
    )


def _request() -> ProviderRequest:
    return ProviderRequest(model="m", messages=[ChatMessage(role="user", content="hi")])


@pytest.mark.asyncio
async def test_timeout_is_recovered():
    result = await _client(SlowAdapter(), timeout=0.05).complete(system_prompt="s", user_prompt="u")
    assert not result.ok
    assert result.recovered
    assert "timed out" in result.error


@pytest.mark.asyncio
async def test_upstream_error_is_recovered():
    result = await _client(FailingAdapter(UpstreamError("backend returned 500: boom", status_code=500))).complete(
        system_prompt="s", user_prompt="u"
    )
    assert not result.ok
    assert result.error == "UpstreamError: backend returned 500: boom"


@pytest.mark.asyncio
async def test_programming_errors_propagate():
    with pytest.raises(KeyError):
        await _client(FailingAdapter(KeyError("bug"))).complete(system_prompt="s", user_prompt="u")


@pytest.mark.asyncio
async def test_missing_adapter_is_unavailable():
    client = _client(None)
    assert not client.available()
    assert client.configured_providers() == []
    result = await client.complete(system_prompt="s", user_prompt="u")
    assert not result.ok


@pytest.mark.asyncio
async def test_openai_adapter_success(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append({"auth": request.headers["Authorization"], "path": request.url.path})
        return httpx.Response(200, json={"choices": [{"message": {"content": "  hello there "}}]})

    adapter = OpenAICompatibleAdapter(OpenAIProviderConfig(), transport=httpx.MockTransport(handler))
    assert adapter.configured()
    response = await adapter.generate(_request())

    assert response.output_text == "hello there"
    assert seen == [{"auth": "Bearer sk-test", "path": "/v1/chat/completions"}]


@pytest.mark.asyncio
async def test_openai_adapter_client_error_is_not_retried(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

    adapter = OpenAICompatibleAdapter(OpenAIProviderConfig(), transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError, match="Incorrect API key provided") as exc_info:
        await adapter.generate(_request())
    assert exc_info.value.status_code == 401
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_openai_adapter_server_error_is_retried_once(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(503, json={"error": {"message": "overloaded"}})

    adapter = OpenAICompatibleAdapter(OpenAIProviderConfig(), transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError, match="503"):
        await adapter.generate(_request())
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_openai_adapter_without_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    adapter = OpenAICompatibleAdapter(OpenAIProviderConfig())
    assert not adapter.configured()
    with pytest.raises(UpstreamError, match="API key is not configured"):
        await adapter.generate(_request())


def test_classify_error_uses_status_code():
    assert classify_error(UpstreamError("x", status_code=503), category="provider", component="t").retryable
    assert classify_error(UpstreamError("x", status_code=429), category="provider", component="t").retryable
    assert not classify_error(UpstreamError("x", status_code=400), category="provider", component="t").retryable
    info = classify_error(UpstreamError("backend request failed: connection reset"), category="provider", component="t")
    assert info.retryable
    assert info.http_status is None
