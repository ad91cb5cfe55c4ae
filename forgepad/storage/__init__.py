"""
Storage module: Credentials, preferences and provider health.

Public API:
- ProviderStore: Thread-safe store with optional JSON persistence
- Preferences: Default provider and fallback preference
- HealthRecord: Last recorded health for one provider
"""

from forgepad.storage.store import HealthRecord, Preferences, ProviderStore, StoredState

__all__ = [
    "ProviderStore",
    "Preferences",
    "HealthRecord",
    "StoredState",
]
