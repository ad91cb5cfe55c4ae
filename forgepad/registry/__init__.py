"""
Registry module: Provider set and metadata.

Public API:
- ProviderKind: Enum of supported providers, in fallback priority order
- PROVIDER_ORDER: The fixed priority order as a tuple
- ProviderMetadata: Pydantic model for provider configuration
- ProviderRegistry: Central registry class
- get_provider_registry: Singleton accessor function
"""

from forgepad.registry.providers import (
    PROVIDER_ORDER,
    ProviderKind,
    ProviderMetadata,
    ProviderRegistry,
    get_provider_registry,
)

__all__ = [
    "ProviderKind",
    "PROVIDER_ORDER",
    "ProviderMetadata",
    "ProviderRegistry",
    "get_provider_registry",
]
