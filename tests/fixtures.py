"""
Test Fixtures

Shared fakes and sample data for the ForgePad test suite.

ScriptedAdapter stands in for an SDK-backed adapter: it still obtains its
key through the store, so credential handling is exercised, but the vendor
call is replaced by a scripted reply, failure or delay.
"""

import asyncio

from forgepad.core.types import Message, SendOptions
from forgepad.dispatcher.adapters import ProviderAdapter
from forgepad.registry.providers import ProviderKind


class ScriptedAdapter(ProviderAdapter):
    """
    Adapter whose behaviour is fixed at construction.

    Args:
        provider: Provider this adapter answers for.
        store: Provider store used for credential lookup.
        reply: Text returned on success.
        error: Exception raised instead of replying.
        delay: Seconds to sleep before replying or raising.
        tools: (name, args) pairs reported as tool invocations.
        probe_error: Exception raised by probe().
    """

    def __init__(
        self,
        provider: ProviderKind,
        store,
        reply: str = "ok",
        error: Exception | None = None,
        delay: float = 0.0,
        tools: list[tuple[str, dict]] | None = None,
        probe_error: Exception | None = None,
    ):
        self.provider = provider
        super().__init__(store)
        self.reply = reply
        self.error = error
        self.delay = delay
        self.tools = tools or []
        self.probe_error = probe_error
        self.calls: list[list[Message]] = []
        self.keys_seen: list[str] = []
        self.probed_with: list[str] = []
        self.finished = False

    async def _request(self, api_key: str, messages: list[Message], options: SendOptions) -> str:
        self.calls.append(list(messages))
        self.keys_seen.append(api_key)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self._emit_tokens(self.reply, options)
        for name, args in self.tools:
            self._emit_tool(options, name, args)
        self.finished = True
        return self.reply

    async def probe(self, api_key: str) -> None:
        self.probed_with.append(api_key)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.probe_error is not None:
            raise self.probe_error


def scripted_adapters(store, **overrides) -> dict[ProviderKind, ScriptedAdapter]:
    """
    Build one ScriptedAdapter per provider.

    Keyword arguments are keyed by provider value and hold the constructor
    arguments for that provider, e.g. openai={"error": RuntimeError("401")}.
    """
    return {
        kind: ScriptedAdapter(kind, store, **{"reply": f"{kind.value} says hi", **overrides.get(kind.value, {})})
        for kind in ProviderKind
    }


SAMPLE_KEYS = {
    ProviderKind.GEMINI: "gm-test-key",
    ProviderKind.OPENAI: "sk-test-key",
    ProviderKind.ANTHROPIC: "sk-ant-test-key",
}

CLASSIFICATION_CASES = [
    # (message, expected kind value)
    ("401 Unauthorized", "auth"),
    ("Invalid key supplied", "auth"),
    ("openai API key missing (missing_credential)", "auth"),
    ("Request timeout while reading response", "timeout"),
    ("Error code: 429 - too many requests", "rate_limit"),
    ("Rate limit reached for requests", "rate_limit"),
    ("Network connection reset", "network"),
    ("Failed to fetch", "network"),
    ("Upstream provider returned 500", "provider"),
    ("Something odd happened", "unknown"),
]
