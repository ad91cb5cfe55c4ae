"""
Fallback Orchestrator - Ordered provider fallback for one conversation turn.

This is the single entry point for sending a conversation to an AI
provider. For each call it:
1. Resolves the selected provider, fallback preference and timeout
2. Builds the candidate list: selected provider first, then the fixed
   priority order, restricted to configured providers when any exist
3. Attempts candidates one at a time, each raced against the timeout
4. Classifies every failure, records health and publishes events
5. Returns the first success, or raises the last classified error

Per-call state machine:

    SELECTING -> ATTEMPTING(candidate) -> SUCCEEDED
                                       -> ADVANCING -> SELECTING (next)
                                       -> FAILED

Attempts are strictly sequential so a single call never issues two
billable requests at once. Separate calls may interleave; they share
health state and the store without further coordination.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, TypeVar

from forgepad.config import Settings, get_settings
from forgepad.core.errors import (
    ClassifiedError,
    NoProvidersAvailableError,
    StructuredValidationError,
    classify_error,
)
from forgepad.core.types import (
    ErrorKind,
    HealthState,
    Message,
    ProviderHealthEvent,
    ProviderSwitchEvent,
    SendOptions,
    SendResult,
)
from forgepad.dispatcher.adapters import ProviderAdapter, build_adapters
from forgepad.dispatcher.timeout import with_timeout
from forgepad.registry.providers import PROVIDER_ORDER, ProviderKind
from forgepad.runtime.events import RuntimeEventBus, RuntimeListener
from forgepad.runtime.health import HealthTracker

if TYPE_CHECKING:
    from forgepad.storage.store import ProviderStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_candidates(
    selected: ProviderKind,
    configured: Iterable[ProviderKind],
) -> list[ProviderKind]:
    """
    Order the providers to attempt for one call.

    The selected provider comes first, followed by the fixed priority
    order without it. The list is then restricted to configured providers;
    if none are configured the full list is returned so attempts still run
    and fail fast with an auth error.

    Args:
        selected: Provider chosen by the caller or preferences.
        configured: Providers with a usable credential.

    Returns:
        Deduplicated candidate list.
    """
    ordered = [selected, *(p for p in PROVIDER_ORDER if p != selected)]
    configured_set = set(configured)
    usable = [p for p in ordered if p in configured_set]
    return usable or ordered


class FallbackOrchestrator:
    """
    Provider fallback orchestrator.

    Construct once per process and pass the instance to callers. It owns
    the adapter registry, the runtime event bus and the health tracker.

    Usage:
        orchestrator = FallbackOrchestrator(store)
        result = await orchestrator.send_message(
            [Message(role="user", content="Hello")],
            SendOptions(system_prompt="Be brief."),
        )
        print(result.provider, result.text)
    """

    def __init__(
        self,
        store: "ProviderStore",
        settings: Settings | None = None,
        adapters: Mapping[ProviderKind, ProviderAdapter] | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            store: Credential, preference and health store.
            settings: Application settings (default timeout, env override).
            adapters: One adapter per ProviderKind. Defaults to the SDK-backed set.

        Raises:
            ValueError: adapters does not cover exactly the ProviderKind set.
        """
        self._store = store
        self._settings = settings or get_settings()
        registry = dict(adapters) if adapters is not None else build_adapters(store, self._settings)

        missing = set(ProviderKind) - set(registry)
        extra = set(registry) - set(ProviderKind)
        if missing or extra:
            raise ValueError(
                f"Adapter registry must cover every provider exactly once "
                f"(missing={sorted(p.value for p in missing)}, extra={sorted(map(str, extra))})"
            )

        self._adapters: dict[ProviderKind, ProviderAdapter] = registry
        self._events = RuntimeEventBus()
        self.health = HealthTracker(store)

    @property
    def store(self) -> "ProviderStore":
        return self._store

    def adapter_for(self, provider: ProviderKind) -> ProviderAdapter:
        return self._adapters[provider]

    # ------------------------------------------------------------------
    # Runtime events
    # ------------------------------------------------------------------

    def subscribe_runtime_events(self, listener: RuntimeListener):
        """Subscribe to switch and health events. Returns an unsubscribe function."""
        return self._events.subscribe(listener)

    def _emit_switch(
        self,
        options: SendOptions,
        previous: ProviderKind,
        provider: ProviderKind,
        last_error: ClassifiedError | None,
    ) -> None:
        reason = last_error.kind.value if last_error else ErrorKind.PROVIDER.value
        event = ProviderSwitchEvent(from_provider=previous, to_provider=provider, reason=reason)
        logger.info(f"Provider switch: {previous.value} -> {provider.value} ({reason})")
        if options.on_provider_switch:
            options.on_provider_switch(event)
        if options.on_provider_event:
            options.on_provider_event(event.describe())
        self._events.publish(event)

    def _record_health(
        self,
        options: SendOptions,
        provider: ProviderKind,
        health: HealthState,
        detail: str | None = None,
    ) -> None:
        self.health.record(provider, health, detail)
        event = ProviderHealthEvent(provider=provider, health=health, detail=detail)
        if options.on_provider_health:
            options.on_provider_health(event)
        self._events.publish(event)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_message(
        self,
        messages: list[Message],
        options: SendOptions[T] | None = None,
    ) -> SendResult[T]:
        """
        Send a conversation, falling back across providers on failure.

        Args:
            messages: Conversation in chronological order. Not mutated.
            options: Per-call overrides and callbacks.

        Returns:
            SendResult from the first candidate that succeeded.

        Raises:
            ClassifiedError: The last classified failure, once fallback is
                disabled or candidates are exhausted.
        """
        options = options or SendOptions()
        prefs = self._store.get_preferences()

        selected = options.provider or prefs.default_provider
        fallback_enabled = (
            options.enable_fallback
            if options.enable_fallback is not None
            else prefs.provider_fallback_enabled
        )
        timeout_ms = (
            options.timeout_ms
            if options.timeout_ms is not None
            else self._settings.request_timeout_ms
        )

        conversation = list(messages)
        if options.system_prompt:
            conversation = [Message(role="system", content=options.system_prompt), *conversation]

        candidates = build_candidates(selected, self._store.get_configured_providers())
        logger.debug(
            f"Sending {len(conversation)} messages; candidates="
            f"{[p.value for p in candidates]}, fallback={fallback_enabled}, timeout={timeout_ms}ms"
        )

        last_error: ClassifiedError | None = None

        for index, provider in enumerate(candidates):
            if index > 0:
                self._emit_switch(options, candidates[index - 1], provider, last_error)

            adapter = self._adapters[provider]
            try:
                text = await with_timeout(
                    adapter.complete(conversation, options), timeout_ms, provider
                )
            except Exception as e:
                last_error = self._attempt_failed(options, provider, e)
                if not fallback_enabled or index == len(candidates) - 1:
                    raise last_error
                continue

            self._record_health(options, provider, HealthState.HEALTHY)

            structured = None
            if options.structured is not None:
                try:
                    structured = options.structured.parse(text)
                    if not options.structured.is_valid(structured):
                        raise StructuredValidationError(provider)
                except Exception as e:
                    last_error = self._attempt_failed(options, provider, e)
                    if not fallback_enabled or index == len(candidates) - 1:
                        raise last_error
                    continue

            return SendResult(
                text=text,
                provider=provider,
                structured=structured,
                fallback_used=index > 0,
            )

        raise last_error or NoProvidersAvailableError()

    def _attempt_failed(
        self,
        options: SendOptions,
        provider: ProviderKind,
        error: Exception,
    ) -> ClassifiedError:
        """Classify a failed attempt, record the provider's health and return the error."""
        classified = classify_error(provider, error)
        health = (
            HealthState.UNCONFIGURED
            if classified.kind is ErrorKind.AUTH
            else HealthState.ERROR
        )
        logger.warning(
            f"{provider.value} attempt failed ({classified.kind.value}): {classified.message}"
        )
        self._record_health(options, provider, health, classified.message)
        return classified

    # ------------------------------------------------------------------
    # Key validation
    # ------------------------------------------------------------------

    async def validate_key(self, provider: ProviderKind, credential: str) -> bool:
        """
        Check a key with one minimal request against the provider.

        Used by onboarding and settings flows; does not touch health state.

        Returns:
            True if the probe succeeded, False otherwise.
        """
        if not credential or not credential.strip():
            return False

        adapter = self._adapters[provider]
        try:
            await with_timeout(
                adapter.probe(credential.strip()),
                self._settings.validation_timeout_ms,
                provider,
            )
        except Exception as e:
            error = classify_error(provider, e)
            logger.warning(f"Key validation failed for {provider.value} ({error.kind.value})")
            return False

        logger.info(f"Key validated for {provider.value}")
        return True

    def provider_health(self) -> dict[ProviderKind, HealthState]:
        """Last recorded health for every provider."""
        return self.health.snapshot()
