from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from pagecraft import config

logger = logging.getLogger(__name__)


class ModelError(RuntimeError):
    pass


class ModelClient(ABC):
    @abstractmethod
    async def generate(self, system: str, messages: List[Dict[str, str]]) -> str:
        """Return the assistant text for a system prompt and chat turns."""


class AnthropicClient(ModelClient):
    def __init__(
        self,
        api_key: str = config.ANTHROPIC_API_KEY,
        model: str = config.ANTHROPIC_MODEL,
        base_url: str = config.ANTHROPIC_BASE_URL,
        max_tokens: int = config.MAX_TOKENS,
        temperature: float = config.TEMPERATURE,
        timeout: float = config.REQUEST_TIMEOUT,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    async def generate(self, system: str, messages: List[Dict[str, str]]) -> str:
        if not self.api_key:
            raise ModelError("ANTHROPIC_API_KEY is not configured")
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system,
            "messages": messages,
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": config.ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        data = await _post_json(f"{self.base_url}/v1/messages", payload, headers, self.timeout)
        content = data.get("content") or []
        first = content[0] if content else None
        if not isinstance(first, dict) or first.get("type") != "text":
            raise ModelError("Unexpected response type from model")
        return str(first.get("text") or "")


class OllamaClient(ModelClient):
    def __init__(
        self,
        base_url: str = config.OLLAMA_BASE_URL,
        model: str = config.OLLAMA_MODEL,
        max_tokens: int = config.MAX_TOKENS,
        temperature: float = config.TEMPERATURE,
        timeout: float = config.REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    async def generate(self, system: str, messages: List[Dict[str, str]]) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": system}, *messages],
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        data = await _post_json(f"{self.base_url}/api/chat", payload, None, self.timeout)
        message = data.get("message")
        if not isinstance(message, dict) or not isinstance(message.get("content"), str):
            raise ModelError("Unexpected response type from model")
        return message["content"]


async def _post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Optional[Dict[str, str]],
    timeout: float,
) -> Dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as exc:
        body = exc.response.text[:200]
        logger.error("Model API returned %s: %s", exc.response.status_code, body)
        raise ModelError(f"Model API returned {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.error("Model API request to %s failed: %s", url, exc)
        raise ModelError(f"Model API request failed: {exc}") from exc
    except ValueError as exc:
        raise ModelError("Model API returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise ModelError("Unexpected response type from model")
    return data


def get_model_client(provider: Optional[str] = None) -> ModelClient:
    provider = (provider or config.MODEL_PROVIDER).lower()
    if provider == "anthropic":
        return AnthropicClient()
    if provider == "ollama":
        return OllamaClient()
    raise ModelError(f"Unknown model provider: {provider}")
