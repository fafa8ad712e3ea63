import json

import httpx
import pytest

from pagecraft.services.model_client import (
    AnthropicClient,
    ModelError,
    OllamaClient,
    get_model_client,
)


def _patch_async_client(monkeypatch: pytest.MonkeyPatch, handler):
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)


def _anthropic() -> AnthropicClient:
    return AnthropicClient(
        api_key="test-key",
        model="claude-test",
        base_url="http://anthropic.local/",
        max_tokens=4000,
        temperature=0.7,
        timeout=5.0,
    )


@pytest.mark.asyncio
async def test_anthropic_request_shape(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["payload"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"content": [{"type": "text", "text": '{"explanation": "hi"}'}]})

    _patch_async_client(monkeypatch, handler)
    text = await _anthropic().generate("system prompt", [{"role": "user", "content": "hello"}])

    assert text == '{"explanation": "hi"}'
    assert seen["url"] == "http://anthropic.local/v1/messages"
    assert seen["headers"]["x-api-key"] == "test-key"
    assert seen["headers"]["anthropic-version"] == "2023-06-01"
    assert seen["payload"] == {
        "model": "claude-test",
        "max_tokens": 4000,
        "temperature": 0.7,
        "system": "system prompt",
        "messages": [{"role": "user", "content": "hello"}],
    }


@pytest.mark.asyncio
async def test_anthropic_requires_api_key():
    client = AnthropicClient(api_key="", base_url="http://anthropic.local")
    with pytest.raises(ModelError, match="ANTHROPIC_API_KEY"):
        await client.generate("system", [{"role": "user", "content": "hello"}])


@pytest.mark.asyncio
async def test_anthropic_non_text_block_is_an_error(monkeypatch):
    _patch_async_client(
        monkeypatch,
        lambda request: httpx.Response(200, json={"content": [{"type": "tool_use", "id": "x"}]}),
    )
    with pytest.raises(ModelError, match="Unexpected response type"):
        await _anthropic().generate("system", [{"role": "user", "content": "hello"}])


@pytest.mark.asyncio
async def test_http_error_status_becomes_model_error(monkeypatch):
    _patch_async_client(monkeypatch, lambda request: httpx.Response(529, json={"error": "overloaded"}))
    with pytest.raises(ModelError, match="529"):
        await _anthropic().generate("system", [{"role": "user", "content": "hello"}])


@pytest.mark.asyncio
async def test_transport_error_becomes_model_error(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _patch_async_client(monkeypatch, handler)
    with pytest.raises(ModelError, match="request failed"):
        await _anthropic().generate("system", [{"role": "user", "content": "hello"}])


@pytest.mark.asyncio
async def test_ollama_puts_system_prompt_first(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["payload"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "ok"}, "done": True})

    _patch_async_client(monkeypatch, handler)
    client = OllamaClient(base_url="http://ollama.local", model="glm-test", max_tokens=100, temperature=0.2)
    text = await client.generate("be helpful", [{"role": "user", "content": "hi"}])

    assert text == "ok"
    assert seen["url"] == "http://ollama.local/api/chat"
    assert seen["payload"]["stream"] is False
    assert seen["payload"]["messages"] == [
        {"role": "system", "content": "be helpful"},
        {"role": "user", "content": "hi"},
    ]
    assert seen["payload"]["options"] == {"temperature": 0.2, "num_predict": 100}


def test_get_model_client_by_provider():
    assert isinstance(get_model_client("anthropic"), AnthropicClient)
    assert isinstance(get_model_client("Ollama"), OllamaClient)
    with pytest.raises(ModelError, match="Unknown model provider"):
        get_model_client("gpt-9000")
