"""
Runtime module: Process-wide provider state observers.

Public API:
- RuntimeEventBus: Typed publish/subscribe channel for switch and health events
- HealthTracker: Write-through health recording and UI read path
"""

from forgepad.runtime.events import RuntimeEventBus, RuntimeListener
from forgepad.runtime.health import HealthTracker

__all__ = [
    "RuntimeEventBus",
    "RuntimeListener",
    "HealthTracker",
]
