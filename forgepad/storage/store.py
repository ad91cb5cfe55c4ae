"""
Provider Store - Credentials, preferences and last-known provider health.

Holds per-provider API keys, the default provider, the fallback preference
and the last health recorded for each provider. State lives in memory and
is optionally mirrored to a JSON file so it survives restarts.

The store is thread-safe using threading.Lock. Writes from concurrent
sends are last-write-wins; nothing orders them across calls.

Keys are kept as SecretStr and only leave the store inside
with_provider_credential(), scoped to the callback.
"""

import json
import logging
import threading
import time
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_serializer

from forgepad.config import Settings, get_settings
from forgepad.core.errors import MissingCredentialError
from forgepad.core.types import HealthState
from forgepad.registry.providers import PROVIDER_ORDER, ProviderKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HealthRecord(BaseModel):
    """Last health recorded for a provider."""

    health: HealthState = Field(..., description="Recorded health state")

    detail: str | None = Field(
        default=None,
        description="Failure message from the attempt that set this state",
    )

    updated_at: float = Field(
        default_factory=time.time,
        description="Unix timestamp of the attempt",
    )


class Preferences(BaseModel):
    """User preferences that steer provider selection."""

    default_provider: ProviderKind = Field(
        default=ProviderKind.GEMINI,
        description="Provider tried first when a call does not name one",
    )

    provider_fallback_enabled: bool = Field(
        default=True,
        description="Whether failed attempts advance to the next provider",
    )

    provider_health: dict[ProviderKind, HealthRecord] = Field(
        default_factory=dict,
        description="Last recorded health per provider",
    )


class StoredState(BaseModel):
    """Everything the store persists."""

    credentials: dict[ProviderKind, SecretStr] = Field(default_factory=dict)
    preferences: Preferences = Field(default_factory=Preferences)
    onboarding_complete: bool = False

    @field_serializer("credentials", when_used="json")
    def _dump_credentials(self, credentials: dict[ProviderKind, SecretStr]) -> dict[str, str]:
        return {kind.value: key.get_secret_value() for kind, key in credentials.items()}


class ProviderStore:
    """
    Thread-safe credential and preference store.

    Example:
        store = ProviderStore()
        store.save_credentials({ProviderKind.OPENAI: "sk-..."})
        await store.with_provider_credential(ProviderKind.OPENAI, call_api)
    """

    def __init__(self, path: str | Path | None = None, settings: Settings | None = None):
        """
        Initialize the store.

        Args:
            path: JSON file to load from and persist to. None keeps state in memory.
            settings: Source of preference defaults and the Gemini env override.
        """
        self._settings = settings or get_settings()
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._listeners: list[Callable[[Preferences], None]] = []
        self._state = self._load()

    def _default_state(self) -> StoredState:
        return StoredState(
            preferences=Preferences(
                default_provider=self._settings.default_provider,
                provider_fallback_enabled=self._settings.provider_fallback_enabled,
            )
        )

    def _load(self) -> StoredState:
        if self._path is None or not self._path.exists():
            return self._default_state()
        try:
            return StoredState.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.error(f"Failed to load provider store from {self._path}: {e}")
            return self._default_state()

    def _persist(self) -> None:
        """Write state to disk. Caller holds the lock."""
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(self._state.model_dump(mode="json"), indent=2),
            encoding="utf-8",
        )

    def _notify(self, preferences: Preferences) -> None:
        for listener in list(self._listeners):
            try:
                listener(preferences)
            except Exception:
                logger.exception("Preferences listener failed")

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_preferences(self) -> Preferences:
        """Return a copy of the current preferences."""
        with self._lock:
            return self._state.preferences.model_copy(deep=True)

    def save_preferences(
        self,
        default_provider: ProviderKind | None = None,
        provider_fallback_enabled: bool | None = None,
    ) -> Preferences:
        """Update the given preference fields and return the result."""
        with self._lock:
            prefs = self._state.preferences
            if default_provider is not None:
                prefs.default_provider = ProviderKind(default_provider)
            if provider_fallback_enabled is not None:
                prefs.provider_fallback_enabled = provider_fallback_enabled
            self._persist()
            snapshot = prefs.model_copy(deep=True)
        self._notify(snapshot)
        return snapshot

    def on_preferences_changed(self, listener: Callable[[Preferences], None]) -> Callable[[], None]:
        """Register a listener for preference and credential changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    @property
    def onboarding_complete(self) -> bool:
        with self._lock:
            return self._state.onboarding_complete

    def save_credentials(
        self,
        keys: dict[ProviderKind, str],
        onboarding_complete: bool | None = None,
    ) -> list[ProviderKind]:
        """
        Store API keys. An empty string removes the provider's key.

        Returns:
            Providers configured after the update.
        """
        with self._lock:
            for provider, key in keys.items():
                provider = ProviderKind(provider)
                if key:
                    self._state.credentials[provider] = SecretStr(key)
                else:
                    self._state.credentials.pop(provider, None)
            if onboarding_complete is not None:
                self._state.onboarding_complete = onboarding_complete
            self._persist()
            snapshot = self._state.preferences.model_copy(deep=True)
        logger.info(f"Credentials updated for: {', '.join(p.value for p in keys)}")
        self._notify(snapshot)
        return self.get_configured_providers()

    def clear_credentials(self) -> None:
        """Forget every key and preference."""
        with self._lock:
            self._state = self._default_state()
            if self._path is not None and self._path.exists():
                self._path.unlink()
            snapshot = self._state.preferences.model_copy(deep=True)
        logger.info("Provider store cleared")
        self._notify(snapshot)

    def has_env_override(self, provider: ProviderKind) -> bool:
        """Whether the environment supplies this provider's key."""
        if provider is not ProviderKind.GEMINI:
            return False
        key = self._settings.gemini_api_key
        return key is not None and bool(key.get_secret_value())

    def get_configured_providers(self) -> list[ProviderKind]:
        """
        Return providers with a usable credential, in priority order.

        Includes Gemini when GEMINI_API_KEY is set, even without a stored key.
        """
        with self._lock:
            stored = {p for p, key in self._state.credentials.items() if key.get_secret_value()}
        return [p for p in PROVIDER_ORDER if p in stored or self.has_env_override(p)]

    async def with_provider_credential(
        self,
        provider: ProviderKind,
        fn: Callable[[str], Awaitable[T]],
    ) -> T:
        """
        Run fn with the provider's stored key.

        The raw key is only handed to fn; the result or failure of fn is
        propagated unchanged.

        Raises:
            MissingCredentialError: No key is stored for the provider.
        """
        with self._lock:
            secret = self._state.credentials.get(provider)
        if secret is None or not secret.get_secret_value():
            raise MissingCredentialError(provider)
        return await fn(secret.get_secret_value())

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def record_provider_health(
        self,
        provider: ProviderKind,
        health: HealthState,
        detail: str | None = None,
    ) -> None:
        """Persist the outcome of an attempt against a provider."""
        with self._lock:
            self._state.preferences.provider_health[provider] = HealthRecord(
                health=health, detail=detail
            )
            self._persist()

    def get_provider_health(self, provider: ProviderKind) -> HealthRecord | None:
        """Return the last recorded health, or None if never attempted."""
        with self._lock:
            record = self._state.preferences.provider_health.get(provider)
            return record.model_copy() if record else None
