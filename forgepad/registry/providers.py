"""
Provider Registry

This module defines the closed set of AI providers ForgePad can route to,
in their fixed fallback priority order:
- Gemini: default provider, free tier, accepts a GEMINI_API_KEY override
- OpenAI: chat completions
- Anthropic: messages API

Each provider entry includes:
- Display name and API model name
- Generation defaults (max tokens, temperature)
- Optional environment override for its credential
"""

from enum import Enum

from pydantic import BaseModel, Field


class ProviderKind(str, Enum):
    """
    Supported AI providers.

    Declaration order is the fallback priority order.
    """

    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


PROVIDER_ORDER: tuple[ProviderKind, ...] = tuple(ProviderKind)


class ProviderMetadata(BaseModel):
    """
    Complete metadata for a registered provider.

    Holds everything an adapter needs to issue a request without
    reaching back into configuration.
    """

    provider: ProviderKind = Field(
        ...,
        description="Provider this entry describes",
    )

    display_name: str = Field(
        ...,
        description="Human-readable provider name",
    )

    api_model_name: str = Field(
        ...,
        description="Model name used in provider API calls",
    )

    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Default max output tokens",
    )

    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Default temperature for inference",
    )

    env_override: str | None = Field(
        default=None,
        description="Environment variable whose value bypasses the credential store",
    )

    free_tier: bool = Field(
        default=False,
        description="Whether the provider is usable without a paid key",
    )


class ProviderRegistry:
    """
    Central registry of all supported providers.

    Attributes:
        _providers: Dictionary mapping provider kinds to their metadata
    """

    def __init__(self) -> None:
        self._providers: dict[ProviderKind, ProviderMetadata] = {}
        self._initialize_providers()

    def _initialize_providers(self) -> None:
        """Register all supported providers with their metadata."""

        self._register(
            ProviderMetadata(
                provider=ProviderKind.GEMINI,
                display_name="Google Gemini",
                api_model_name="gemini-2.0-flash-exp",
                max_tokens=2048,
                temperature=0.7,
                env_override="GEMINI_API_KEY",
                free_tier=True,
            )
        )

        self._register(
            ProviderMetadata(
                provider=ProviderKind.OPENAI,
                display_name="OpenAI",
                api_model_name="gpt-4o-mini",
                max_tokens=1024,
                temperature=0.7,
            )
        )

        self._register(
            ProviderMetadata(
                provider=ProviderKind.ANTHROPIC,
                display_name="Anthropic Claude",
                api_model_name="claude-3-5-haiku-latest",
                max_tokens=1024,
                temperature=0.7,
            )
        )

    def _register(self, metadata: ProviderMetadata) -> None:
        """Register a provider in the registry."""
        self._providers[metadata.provider] = metadata

    def get(self, provider: ProviderKind) -> ProviderMetadata:
        """
        Retrieve provider metadata.

        Every ProviderKind is registered, so the lookup cannot miss.
        """
        return self._providers[provider]

    def list_providers(self) -> list[ProviderMetadata]:
        """Return all registered providers in priority order."""
        return [self._providers[kind] for kind in PROVIDER_ORDER]

    def priority_order(self) -> list[ProviderKind]:
        """Return the fixed fallback priority order."""
        return list(PROVIDER_ORDER)


_registry_instance: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    """
    Get the global provider registry instance.

    Returns:
        The singleton ProviderRegistry instance
    """
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = ProviderRegistry()
    return _registry_instance
