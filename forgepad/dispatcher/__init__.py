"""
Dispatcher module: Provider adapters and the fallback orchestrator.

This module sends a conversation to one of several interchangeable AI
providers (Gemini, OpenAI, Anthropic), racing each attempt against a
timeout and falling back to the next configured provider on failure.

Key exports:
- FallbackOrchestrator: Main entry point (send_message, validate_key)
- build_candidates(): Per-call provider ordering
- ProviderAdapter and its GeminiAdapter / OpenAIAdapter / AnthropicAdapter variants
- build_adapters(): One SDK-backed adapter per provider
- with_timeout(): Deadline race for a single attempt
- StructuredParser, pydantic_parser(), extract_json(): Structured output helpers
"""

from forgepad.dispatcher.adapters import (
    # Adapter contract
    ProviderAdapter,
    # Provider variants
    AnthropicAdapter,
    GeminiAdapter,
    OpenAIAdapter,
    build_adapters,
)
from forgepad.dispatcher.orchestrator import FallbackOrchestrator, build_candidates
from forgepad.dispatcher.structured import StructuredParser, extract_json, pydantic_parser
from forgepad.dispatcher.timeout import with_timeout

__all__ = [
    # Orchestration
    "FallbackOrchestrator",
    "build_candidates",
    # Adapters
    "ProviderAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "build_adapters",
    # Attempt helpers
    "with_timeout",
    "StructuredParser",
    "extract_json",
    "pydantic_parser",
]
