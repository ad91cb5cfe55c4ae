"""
Health Tracker - Last-known provider health for status displays.

Writes through to the provider store after each attempt and serves the
read path for UI and the /providers endpoint. Candidate selection never
consults it; only credential presence gates which providers are tried.
"""

import logging
from typing import TYPE_CHECKING

from forgepad.core.types import HealthState
from forgepad.registry.providers import PROVIDER_ORDER, ProviderKind

if TYPE_CHECKING:
    from forgepad.storage.store import ProviderStore

logger = logging.getLogger(__name__)


class HealthTracker:
    """Record and read provider health through the store."""

    def __init__(self, store: "ProviderStore") -> None:
        self._store = store

    def record(
        self,
        provider: ProviderKind,
        health: HealthState,
        detail: str | None = None,
    ) -> None:
        """Record an attempt outcome. A failed store write is logged, never raised."""
        logger.debug(f"Health {provider.value} -> {health.value}")
        try:
            self._store.record_provider_health(provider, health, detail)
        except Exception:
            logger.exception(f"Failed to persist health for {provider.value}")

    def read(self, provider: ProviderKind) -> HealthState:
        """Return the last recorded health; never-attempted providers read as unconfigured."""
        record = self._store.get_provider_health(provider)
        return record.health if record else HealthState.UNCONFIGURED

    def snapshot(self) -> dict[ProviderKind, HealthState]:
        return {provider: self.read(provider) for provider in PROVIDER_ORDER}
