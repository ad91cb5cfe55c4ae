"""
Runtime Event Bus - In-process publish/subscribe for provider events.

Listeners receive ProviderSwitchEvent and ProviderHealthEvent values
synchronously, in subscription order. There is no buffering or history:
a listener subscribed after an event was published never sees it.

A listener that raises is logged and skipped; delivery continues with the
next listener.
"""

import logging
from typing import Callable

from forgepad.core.types import RuntimeEvent

logger = logging.getLogger(__name__)

RuntimeListener = Callable[[RuntimeEvent], None]


class RuntimeEventBus:
    """
    Typed callback list scoped to its owner's lifetime.

    Example:
        bus = RuntimeEventBus()
        unsubscribe = bus.subscribe(print)
        bus.publish(ProviderHealthEvent(ProviderKind.OPENAI, HealthState.HEALTHY))
        unsubscribe()
    """

    def __init__(self) -> None:
        self._listeners: list[RuntimeListener] = []

    def subscribe(self, listener: RuntimeListener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A function that removes the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: RuntimeEvent) -> None:
        """Deliver an event to every current listener."""
        # Snapshot so listeners may unsubscribe during delivery.
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Runtime listener failed on {event.type} event")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
