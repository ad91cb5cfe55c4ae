"""
Core Types - Call-scoped values shared by adapters and the orchestrator.

Key components:
- Message: One chronological turn of a conversation
- HealthState / ErrorKind: Closed enumerations for health and failures
- ToolInvocationEvent, ProviderSwitchEvent, ProviderHealthEvent: Observer payloads
- SendOptions: Per-call configuration and callbacks
- SendResult: Outcome of a successful send
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Generic, Literal, TypeVar, Union

from forgepad.registry.providers import ProviderKind

if TYPE_CHECKING:
    from forgepad.dispatcher.structured import StructuredParser

T = TypeVar("T")

Role = Literal["user", "assistant", "system"]


class HealthState(str, Enum):
    """Last observed liveness of a provider."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    ERROR = "error"
    UNCONFIGURED = "unconfigured"


class ErrorKind(str, Enum):
    """
    Attempt-level failure classification.

    TIMEOUT: Attempt exceeded its deadline
    AUTH: Missing, invalid or rejected credential
    RATE_LIMIT: Provider throttled the request
    NETWORK: Connection-level failure
    PROVIDER: Provider-side or domain failure
    UNKNOWN: Nothing matched
    """

    TIMEOUT = "timeout"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    PROVIDER = "provider"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Message:
    """A single conversation turn. Order within a list is chronological."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ToolInvocationEvent:
    """Advisory notice that a provider asked for a named action."""

    provider: ProviderKind
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderSwitchEvent:
    """Fallback moved from one candidate to the next."""

    from_provider: ProviderKind
    to_provider: ProviderKind
    reason: str
    type: Literal["provider_switch"] = "provider_switch"

    def describe(self) -> str:
        """Human-readable notice for status lines."""
        return (
            f"Switched from {self.from_provider.value} to "
            f"{self.to_provider.value} ({self.reason})."
        )


@dataclass(frozen=True)
class ProviderHealthEvent:
    """A provider's health changed as a result of an attempt."""

    provider: ProviderKind
    health: HealthState
    detail: str | None = None
    type: Literal["provider_health"] = "provider_health"


RuntimeEvent = Union[ProviderSwitchEvent, ProviderHealthEvent]


@dataclass
class SendOptions(Generic[T]):
    """
    Per-call configuration for FallbackOrchestrator.send_message().

    Attributes:
        provider: Provider to try first (default: stored preference)
        system_prompt: Prepended as a system message when set
        timeout_ms: Per-attempt timeout (default: settings.request_timeout_ms)
        enable_fallback: Overrides the stored fallback preference when set
        on_token: Receives output fragments in production order
        on_tool_invocation: Receives advisory tool-call notices
        on_provider_switch: Receives each fallback switch
        on_provider_event: Receives a human-readable notice for each switch
        on_provider_health: Receives each health transition
        structured: Optional parser/validator applied to the raw text
    """

    provider: ProviderKind | None = None
    system_prompt: str | None = None
    timeout_ms: int | None = None
    enable_fallback: bool | None = None
    on_token: Callable[[str], None] | None = None
    on_tool_invocation: Callable[[ToolInvocationEvent], None] | None = None
    on_provider_switch: Callable[[ProviderSwitchEvent], None] | None = None
    on_provider_event: Callable[[str], None] | None = None
    on_provider_health: Callable[[ProviderHealthEvent], None] | None = None
    structured: "StructuredParser[T] | None" = None


@dataclass
class SendResult(Generic[T]):
    """
    Result of a successful send.

    Attributes:
        text: Raw text returned by the provider
        provider: Provider that produced the text
        structured: Parsed value when a structured parser was supplied
        fallback_used: True when the first candidate did not produce the result
    """

    text: str
    provider: ProviderKind
    structured: T | None = None
    fallback_used: bool = False
