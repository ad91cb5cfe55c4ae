"""
Provider Adapters - One attempt against one provider.

This module wraps each vendor SDK (google-genai, OpenAI, Anthropic) behind a
single contract so the orchestrator can treat providers interchangeably:

    text = await adapter.complete(messages, options)

Every adapter:
- Obtains its key through ProviderStore.with_provider_credential(), which
  raises MissingCredentialError when nothing is stored
- Reports output fragments through options.on_token, in order
- Reports vendor tool calls through options.on_tool_invocation (advisory)
- Exposes probe(key), a minimal liveness call used for key validation
- Opens a vendor client per call and closes it on every outcome,
  including cancellation by the timeout guard

GeminiAdapter is the free-tier default: when GEMINI_API_KEY is set in the
environment it uses that key and skips the store.

Adapters raise on failure; classification and fallback happen upstream.
"""

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from anthropic import AsyncAnthropic
from google import genai
from google.genai import types as genai_types
from openai import AsyncOpenAI

from forgepad.config import Settings, get_settings
from forgepad.core.types import Message, SendOptions, ToolInvocationEvent
from forgepad.registry.providers import (
    ProviderKind,
    ProviderMetadata,
    ProviderRegistry,
    get_provider_registry,
)

if TYPE_CHECKING:
    from forgepad.storage.store import ProviderStore

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"(\s+)")


def split_tokens(text: str) -> list[str]:
    """Split text into word and whitespace fragments, dropping empties."""
    return [token for token in _TOKEN_SPLIT.split(text) if token]


def _split_system(messages: list[Message]) -> tuple[str | None, list[Message]]:
    """Separate system turns from the conversation for APIs that take them apart."""
    system = "\n\n".join(m.content for m in messages if m.role == "system")
    return (system or None), [m for m in messages if m.role != "system"]


class ProviderAdapter(ABC):
    """
    Base class for provider adapters.

    Subclasses set `provider` and implement _request() and probe().
    """

    provider: ProviderKind

    def __init__(
        self,
        store: "ProviderStore",
        registry: ProviderRegistry | None = None,
    ) -> None:
        self._store = store
        self.metadata: ProviderMetadata = (registry or get_provider_registry()).get(
            self.provider
        )

    async def complete(self, messages: list[Message], options: SendOptions) -> str:
        """Run one request with this provider's credential and return its text."""

        async def invoke(api_key: str) -> str:
            start_time = time.perf_counter()
            text = await self._request(api_key, messages, options)
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{self.metadata.display_name} completed: "
                f"model={self.metadata.api_model_name}, latency={latency_ms:.0f}ms"
            )
            return text

        return await self._with_credential(invoke)

    async def _with_credential(self, fn: Callable[[str], Awaitable[str]]) -> str:
        return await self._store.with_provider_credential(self.provider, fn)

    @abstractmethod
    async def _request(
        self,
        api_key: str,
        messages: list[Message],
        options: SendOptions,
    ) -> str:
        """Issue the vendor request and return the response text."""

    @abstractmethod
    async def probe(self, api_key: str) -> None:
        """Issue a minimal request with api_key. Raises if the key does not work."""

    def _emit_tokens(self, text: str, options: SendOptions) -> None:
        if options.on_token is None:
            return
        for token in split_tokens(text):
            options.on_token(token)

    def _emit_tool(self, options: SendOptions, name: str, args: dict[str, Any]) -> None:
        if options.on_tool_invocation is None:
            return
        options.on_tool_invocation(
            ToolInvocationEvent(provider=self.provider, name=name, args=args)
        )


class GeminiAdapter(ProviderAdapter):
    """
    Google Gemini via the google-genai SDK.

    Prefers the GEMINI_API_KEY environment override over the store.
    """

    provider = ProviderKind.GEMINI

    def __init__(
        self,
        store: "ProviderStore",
        registry: ProviderRegistry | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(store, registry)
        self._settings = settings or get_settings()

    async def _with_credential(self, fn: Callable[[str], Awaitable[str]]) -> str:
        env_key = self._settings.gemini_api_key
        if env_key is not None and env_key.get_secret_value():
            return await fn(env_key.get_secret_value())
        return await super()._with_credential(fn)

    async def _request(
        self,
        api_key: str,
        messages: list[Message],
        options: SendOptions,
    ) -> str:
        system, turns = _split_system(messages)
        client = genai.Client(api_key=api_key)
        try:
            response = await client.aio.models.generate_content(
                model=self.metadata.api_model_name,
                contents=[
                    {
                        "role": "model" if m.role == "assistant" else "user",
                        "parts": [{"text": m.content}],
                    }
                    for m in turns
                ],
                config=genai_types.GenerateContentConfig(
                    system_instruction=system,
                    max_output_tokens=self.metadata.max_tokens,
                    temperature=self.metadata.temperature,
                ),
            )
        finally:
            await client.aio.aclose()

        text = response.text or ""
        self._emit_tokens(text, options)
        for call in response.function_calls or []:
            self._emit_tool(options, call.name or "unknown", dict(call.args or {}))
        return text

    async def probe(self, api_key: str) -> None:
        client = genai.Client(api_key=api_key)
        try:
            await client.aio.models.generate_content(
                model=self.metadata.api_model_name,
                contents="hi",
            )
        finally:
            await client.aio.aclose()


class OpenAIAdapter(ProviderAdapter):
    """OpenAI chat completions via the openai SDK."""

    provider = ProviderKind.OPENAI

    async def _request(
        self,
        api_key: str,
        messages: list[Message],
        options: SendOptions,
    ) -> str:
        async with AsyncOpenAI(api_key=api_key) as client:
            response = await client.chat.completions.create(
                model=self.metadata.api_model_name,
                messages=[m.to_dict() for m in messages],
                max_tokens=self.metadata.max_tokens,
                temperature=self.metadata.temperature,
            )

        message = response.choices[0].message
        text = message.content or ""
        self._emit_tokens(text, options)
        for call in message.tool_calls or []:
            try:
                args = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                args = {"raw": call.function.arguments}
            self._emit_tool(options, call.function.name, args)
        return text

    async def probe(self, api_key: str) -> None:
        async with AsyncOpenAI(api_key=api_key) as client:
            await client.models.list()


class AnthropicAdapter(ProviderAdapter):
    """Anthropic messages API via the anthropic SDK."""

    provider = ProviderKind.ANTHROPIC

    async def _request(
        self,
        api_key: str,
        messages: list[Message],
        options: SendOptions,
    ) -> str:
        system, turns = _split_system(messages)

        # Anthropic takes the system prompt as a separate parameter
        request: dict[str, Any] = {
            "model": self.metadata.api_model_name,
            "max_tokens": self.metadata.max_tokens,
            "temperature": self.metadata.temperature,
            "messages": [m.to_dict() for m in turns],
        }
        if system:
            request["system"] = system

        async with AsyncAnthropic(api_key=api_key) as client:
            response = await client.messages.create(**request)

        parts: list[str] = []
        for block in response.content:
            if block.type == "text":
                parts.append(block.text)
                self._emit_tokens(block.text, options)
            elif block.type == "tool_use":
                self._emit_tool(options, block.name, dict(block.input or {}))
        return "".join(parts)

    async def probe(self, api_key: str) -> None:
        async with AsyncAnthropic(api_key=api_key) as client:
            await client.models.list(limit=1)


def build_adapters(
    store: "ProviderStore",
    settings: Settings | None = None,
    registry: ProviderRegistry | None = None,
) -> dict[ProviderKind, ProviderAdapter]:
    """Create the one adapter per provider used by the orchestrator."""
    return {
        ProviderKind.GEMINI: GeminiAdapter(store, registry, settings),
        ProviderKind.OPENAI: OpenAIAdapter(store, registry),
        ProviderKind.ANTHROPIC: AnthropicAdapter(store, registry),
    }
