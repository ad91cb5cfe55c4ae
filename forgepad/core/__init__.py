"""
Core module: Value types and the error taxonomy.

These have no dependencies beyond the registry, so every other layer
(storage, runtime, dispatcher, API) can import them freely.

Public API:
- Message, SendOptions, SendResult: Call-scoped values
- HealthState, ErrorKind: Closed enumerations
- ToolInvocationEvent, ProviderSwitchEvent, ProviderHealthEvent, RuntimeEvent
- ClassifiedError and its domain subclasses
- classify_error(): Map any failure onto ErrorKind
"""

from forgepad.core.errors import (
    ClassifiedError,
    MissingCredentialError,
    NoProvidersAvailableError,
    ProviderTimeoutError,
    StructuredValidationError,
    classify_error,
    classify_message,
)
from forgepad.core.types import (
    ErrorKind,
    HealthState,
    Message,
    ProviderHealthEvent,
    ProviderSwitchEvent,
    Role,
    RuntimeEvent,
    SendOptions,
    SendResult,
    ToolInvocationEvent,
)

__all__ = [
    # Values
    "Message",
    "Role",
    "SendOptions",
    "SendResult",
    # Enums
    "HealthState",
    "ErrorKind",
    # Events
    "ToolInvocationEvent",
    "ProviderSwitchEvent",
    "ProviderHealthEvent",
    "RuntimeEvent",
    # Errors
    "ClassifiedError",
    "ProviderTimeoutError",
    "MissingCredentialError",
    "NoProvidersAvailableError",
    "StructuredValidationError",
    "classify_error",
    "classify_message",
]
