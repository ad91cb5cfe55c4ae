"""
Runtime Tests

Tests for the runtime event bus and the health tracker.

Test Categories:
1. TestRuntimeEventBus - Subscribe, publish, unsubscribe, listener isolation
2. TestHealthTracker - Health writes and reads through the store
"""

import logging
from unittest.mock import patch

from forgepad.core.types import HealthState, ProviderHealthEvent, ProviderSwitchEvent
from forgepad.registry.providers import ProviderKind
from forgepad.runtime.events import RuntimeEventBus
from forgepad.runtime.health import HealthTracker

SWITCH = ProviderSwitchEvent(
    from_provider=ProviderKind.GEMINI, to_provider=ProviderKind.OPENAI, reason="timeout"
)
HEALTHY = ProviderHealthEvent(provider=ProviderKind.OPENAI, health=HealthState.HEALTHY)


class TestRuntimeEventBus:
    """Tests for RuntimeEventBus."""

    def test_publish_reaches_subscribers_in_order(self):
        bus = RuntimeEventBus()
        calls = []
        bus.subscribe(lambda e: calls.append(("first", e)))
        bus.subscribe(lambda e: calls.append(("second", e)))

        bus.publish(SWITCH)

        assert calls == [("first", SWITCH), ("second", SWITCH)]

    def test_unsubscribe_stops_delivery(self):
        bus = RuntimeEventBus()
        received = []
        unsubscribe = bus.subscribe(received.append)

        bus.publish(SWITCH)
        unsubscribe()
        bus.publish(HEALTHY)

        assert received == [SWITCH]
        assert bus.listener_count == 0

    def test_unsubscribe_twice_is_harmless(self):
        bus = RuntimeEventBus()
        unsubscribe = bus.subscribe(lambda e: None)

        unsubscribe()
        unsubscribe()

        assert bus.listener_count == 0

    def test_no_replay_for_late_subscribers(self):
        bus = RuntimeEventBus()
        bus.publish(SWITCH)
        received = []

        bus.subscribe(received.append)

        assert received == []

    def test_raising_listener_is_isolated(self):
        bus = RuntimeEventBus()
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        bus.publish(HEALTHY)

        assert received == [HEALTHY]

    def test_listener_may_unsubscribe_during_delivery(self):
        bus = RuntimeEventBus()
        received = []
        unsubscribe = None

        def once(event):
            received.append(event)
            unsubscribe()

        unsubscribe = bus.subscribe(once)
        bus.publish(SWITCH)
        bus.publish(HEALTHY)

        assert received == [SWITCH]

    def test_switch_event_describe(self):
        assert SWITCH.describe() == "Switched from gemini to openai (timeout)."


class TestHealthTracker:
    """Tests for HealthTracker."""

    def test_never_attempted_reads_unconfigured(self, store):
        tracker = HealthTracker(store)

        assert tracker.read(ProviderKind.ANTHROPIC) == HealthState.UNCONFIGURED

    def test_record_then_read(self, store):
        tracker = HealthTracker(store)

        tracker.record(ProviderKind.OPENAI, HealthState.ERROR, "provider down")

        assert tracker.read(ProviderKind.OPENAI) == HealthState.ERROR
        assert store.get_provider_health(ProviderKind.OPENAI).detail == "provider down"

    def test_last_write_wins(self, store):
        tracker = HealthTracker(store)

        tracker.record(ProviderKind.GEMINI, HealthState.ERROR)
        tracker.record(ProviderKind.GEMINI, HealthState.HEALTHY)

        assert tracker.read(ProviderKind.GEMINI) == HealthState.HEALTHY

    def test_snapshot_covers_all_providers(self, store):
        tracker = HealthTracker(store)
        tracker.record(ProviderKind.OPENAI, HealthState.HEALTHY)

        assert tracker.snapshot() == {
            ProviderKind.GEMINI: HealthState.UNCONFIGURED,
            ProviderKind.OPENAI: HealthState.HEALTHY,
            ProviderKind.ANTHROPIC: HealthState.UNCONFIGURED,
        }

    def test_failed_store_write_is_logged_not_raised(self, store, caplog):
        tracker = HealthTracker(store)

        with patch.object(
            store, "record_provider_health", side_effect=OSError("read-only file system")
        ), caplog.at_level(logging.ERROR, logger="forgepad.runtime.health"):
            tracker.record(ProviderKind.OPENAI, HealthState.HEALTHY)

        assert "Failed to persist health for openai" in caplog.text
