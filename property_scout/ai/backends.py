"""
AI completion backends.

Every backend normalizes its own endpoint and auth shape to a single
``complete(messages, system_prompt) -> str`` call. Transport failures are
mapped onto BackendHTTPError and BackendConnectionError so the gateway can
tell transient errors from fatal ones.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import aiohttp
import anthropic

from property_scout.config.settings import AIConfig
from property_scout.error_handling.exceptions import (
    BackendConnectionError,
    BackendError,
    BackendHTTPError,
)


logger = logging.getLogger(__name__)

Message = Dict[str, str]


class AIBackend(ABC):
    """Base class for a text-completion backend."""

    name: str = ""
    label: str = ""
    is_cloud: bool = True

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the backend has the credentials or address it needs."""

    @abstractmethod
    async def complete(self, messages: List[Message], system_prompt: str) -> str:
        """Return the completion text for a conversation."""

    async def probe(self) -> bool:
        """Cheap reachability check."""
        return self.is_configured()

    async def list_models(self) -> List[str]:
        return [self.model]

    async def close(self) -> None:
        pass


class _HTTPBackend(AIBackend):
    """Shared aiohttp session handling."""

    def __init__(self, model: str, probe_timeout_seconds: float = 2.0):
        super().__init__(model)
        self.probe_timeout_seconds = probe_timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an open session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Explicitly close the session when done"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _post_json(self, url: str, payload: dict, headers: Optional[dict] = None) -> dict:
        session = await self._ensure_session()
        try:
            async with session.post(url, json=payload, headers=headers) as response:
                if response.status != 200:
                    body = await response.text()
                    raise BackendHTTPError(self.name, response.status, body)
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise BackendConnectionError(self.name, str(e)) from e
        except ValueError as e:
            raise BackendError(self.name, f"invalid JSON body: {e}") from e


class GroqBackend(_HTTPBackend):
    """Groq cloud, OpenAI-compatible chat completions."""

    name = "groq"
    label = "Groq Cloud"
    is_cloud = True

    def __init__(self, config: AIConfig):
        super().__init__(config.groq_model, config.probe_timeout_seconds)
        self.api_key = config.groq_api_key
        self.url = config.groq_url
        self.max_tokens = config.max_tokens
        self.temperature = config.temperature

    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key.startswith("gsk_")

    async def complete(self, messages: List[Message], system_prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        data = await self._post_json(self.url, payload, headers)
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise BackendError(self.name, f"unexpected response shape: {e}") from e


class OllamaBackend(_HTTPBackend):
    """Local Ollama server via /api/generate."""

    name = "ollama"
    label = "Ollama (Local)"
    is_cloud = False

    def __init__(self, config: AIConfig):
        super().__init__(config.ollama_model, config.probe_timeout_seconds)
        self.base_url = config.ollama_url.rstrip("/")
        self.temperature = config.temperature

    def is_configured(self) -> bool:
        return bool(self.base_url)

    @staticmethod
    def flatten(messages: List[Message]) -> str:
        """Fold earlier turns into a single prompt; Ollama's generate API is stateless."""
        *history, last = messages
        if not history:
            return last["content"]
        turns = "\n".join(f"{m['role']}: {m['content']}" for m in history)
        return f"Previous conversation:\n{turns}\n\nuser: {last['content']}"

    async def complete(self, messages: List[Message], system_prompt: str) -> str:
        payload = {
            "model": self.model,
            "prompt": self.flatten(messages),
            "system": system_prompt,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        data = await self._post_json(f"{self.base_url}/api/generate", payload)
        if "response" not in data:
            raise BackendError(self.name, "response field missing")
        return data["response"]

    async def list_models(self) -> List[str]:
        session = await self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=self.probe_timeout_seconds)
        try:
            async with session.get(f"{self.base_url}/api/tags", timeout=timeout) as response:
                if response.status != 200:
                    return []
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Ollama not reachable at {self.base_url}: {e}")
            return []
        return [m.get("name", "") for m in data.get("models", []) if m.get("name")]

    async def probe(self) -> bool:
        return bool(await self.list_models())


class ClaudeBackend(AIBackend):
    """Anthropic Messages API. SDK retries are off; the gateway owns retry policy."""

    name = "claude"
    label = "Claude (Anthropic)"
    is_cloud = True

    def __init__(self, config: AIConfig):
        super().__init__(config.claude_model)
        self.api_key = config.anthropic_api_key
        self.max_tokens = config.max_tokens
        self.temperature = config.temperature
        self.client = anthropic.AsyncAnthropic(api_key=self.api_key, max_retries=0) if self.api_key else None

    def is_configured(self) -> bool:
        return self.client is not None

    async def complete(self, messages: List[Message], system_prompt: str) -> str:
        if self.client is None:
            raise BackendError(self.name, "ANTHROPIC_API_KEY not configured")
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=messages,
            )
        except anthropic.APIStatusError as e:
            raise BackendHTTPError(self.name, e.status_code, str(e)) from e
        except anthropic.APIConnectionError as e:
            raise BackendConnectionError(self.name, str(e)) from e

        return "".join(block.text for block in response.content if block.type == "text")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()


def build_default_backends(config: AIConfig) -> List[AIBackend]:
    """Backends in priority order: primary cloud, local, secondary cloud."""
    return [GroqBackend(config), OllamaBackend(config), ClaudeBackend(config)]
