"""
Pydantic Schemas for the ForgePad API

This module defines the request and response models for the HTTP API:
- ChatRequest / ChatResponse: One conversation turn through the orchestrator
- Provider status, key validation and preference update models
- Error responses and health check schemas

All schemas follow Pydantic v2 patterns with field validation and
OpenAPI documentation support.
"""

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forgepad.core.types import (
    ErrorKind,
    HealthState,
    Message,
    ProviderHealthEvent,
    ProviderSwitchEvent,
    RuntimeEvent,
    ToolInvocationEvent,
)
from forgepad.registry.providers import ProviderKind

if TYPE_CHECKING:
    from forgepad.core.types import SendResult


# =============================================================================
# REQUEST MODELS
# =============================================================================


class ChatMessage(BaseModel):
    """A single conversation turn as sent over the API."""

    role: Literal["user", "assistant", "system"] = Field(
        ...,
        description="Author of the turn",
    )

    content: str = Field(
        ...,
        max_length=100_000,
        description="Text of the turn",
    )

    model_config = ConfigDict(extra="ignore")

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content)


class ChatRequest(BaseModel):
    """
    Request body for the /chat endpoint.

    Example:
        {
            "messages": [{"role": "user", "content": "Explain this stack trace"}],
            "provider": "openai",
            "system_prompt": "You are a coding assistant.",
            "enable_fallback": true
        }
    """

    messages: list[ChatMessage] = Field(
        ...,
        min_length=1,
        description="Conversation in chronological order",
    )

    provider: ProviderKind | None = Field(
        default=None,
        description="Provider to try first (default: stored preference)",
    )

    system_prompt: str | None = Field(
        default=None,
        max_length=20_000,
        description="System prompt prepended to the conversation",
    )

    timeout_ms: int | None = Field(
        default=None,
        gt=0,
        le=300_000,
        description="Per-attempt timeout in milliseconds",
    )

    enable_fallback: bool | None = Field(
        default=None,
        description="Override the stored fallback preference",
    )

    @field_validator("messages")
    @classmethod
    def validate_last_message_has_content(cls, v: list[ChatMessage]) -> list[ChatMessage]:
        """Reject conversations whose latest turn is blank."""
        if not v[-1].content.strip():
            raise ValueError("Latest message cannot be empty or whitespace only")
        return v


class ValidateKeyRequest(BaseModel):
    """Request body for POST /providers/{provider}/validate."""

    key: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="API key or token to check",
    )

    save: bool = Field(
        default=False,
        description="Store the key when it validates",
    )


class PreferencesUpdate(BaseModel):
    """Request body for PUT /preferences. Omitted fields are left unchanged."""

    default_provider: ProviderKind | None = Field(default=None)
    provider_fallback_enabled: bool | None = Field(default=None)


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class RuntimeEventModel(BaseModel):
    """
    Serialized switch or health event.

    provider_switch events set from_provider/to_provider/reason;
    provider_health events set provider/health/detail.
    """

    type: Literal["provider_switch", "provider_health"]
    from_provider: ProviderKind | None = None
    to_provider: ProviderKind | None = None
    reason: str | None = None
    provider: ProviderKind | None = None
    health: HealthState | None = None
    detail: str | None = None


class ToolInvocationModel(BaseModel):
    """Serialized advisory tool call."""

    provider: ProviderKind
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ChatResponse(BaseModel):
    """
    Response from the /chat endpoint.

    Example:
        {
            "text": "The stack trace points at ...",
            "provider": "anthropic",
            "fallback_used": true,
            "events": [
                {"type": "provider_health", "provider": "openai", "health": "unconfigured"},
                {"type": "provider_switch", "from_provider": "openai",
                 "to_provider": "anthropic", "reason": "auth"},
                {"type": "provider_health", "provider": "anthropic", "health": "healthy"}
            ],
            "tool_invocations": []
        }
    """

    text: str = Field(..., description="Provider response text")

    provider: ProviderKind = Field(..., description="Provider that answered")

    fallback_used: bool = Field(
        ...,
        description="True when the first candidate did not produce the answer",
    )

    events: list[RuntimeEventModel] = Field(
        default_factory=list,
        description="Switch and health events observed during this call",
    )

    tool_invocations: list[ToolInvocationModel] = Field(
        default_factory=list,
        description="Advisory tool calls reported by the provider",
    )


class ProviderStatus(BaseModel):
    """Registry entry plus live status for one provider."""

    provider: ProviderKind
    display_name: str
    api_model_name: str
    configured: bool = Field(..., description="A usable credential is available")
    env_override: bool = Field(default=False, description="Credential comes from the environment")
    health: HealthState
    detail: str | None = None
    free_tier: bool = False


class ProvidersResponse(BaseModel):
    """Response from GET /providers."""

    providers: list[ProviderStatus]
    default_provider: ProviderKind
    provider_fallback_enabled: bool
    priority_order: list[ProviderKind]


class ValidateKeyResponse(BaseModel):
    """Response from POST /providers/{provider}/validate."""

    provider: ProviderKind
    valid: bool
    saved: bool = False


# =============================================================================
# ERROR MODELS
# =============================================================================


class ErrorCodes:
    """
    Standard error codes for API responses.

    Provider failures map from ErrorKind so clients can branch, e.g.
    prompt for a new key on AUTH_ERROR or retry later on RATE_LIMITED.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# kind -> (HTTP status, error code)
_KIND_STATUS: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.AUTH: (401, ErrorCodes.AUTH_ERROR),
    ErrorKind.RATE_LIMIT: (429, ErrorCodes.RATE_LIMITED),
    ErrorKind.TIMEOUT: (504, ErrorCodes.PROVIDER_TIMEOUT),
    ErrorKind.NETWORK: (502, ErrorCodes.PROVIDER_ERROR),
    ErrorKind.PROVIDER: (502, ErrorCodes.PROVIDER_ERROR),
    ErrorKind.UNKNOWN: (502, ErrorCodes.PROVIDER_ERROR),
}


def status_for_kind(kind: ErrorKind) -> tuple[int, str]:
    """Return the HTTP status and error code for a failure kind."""
    return _KIND_STATUS[kind]


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")

    message: str = Field(..., description="Human-readable error description")

    kind: ErrorKind | None = Field(
        default=None,
        description="Failure classification for provider errors",
    )

    provider: ProviderKind | None = Field(
        default=None,
        description="Provider whose attempt produced the error",
    )

    field: str | None = Field(
        default=None,
        description="Field that caused the error (for validation errors)",
    )


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    Example:
        {
            "error": {
                "code": "AUTH_ERROR",
                "message": "openai API key missing (missing_credential)",
                "kind": "auth",
                "provider": "openai"
            },
            "events": [
                {"type": "provider_health", "provider": "openai", "health": "unconfigured"}
            ]
        }
    """

    error: ErrorDetail

    events: list[RuntimeEventModel] = Field(
        default_factory=list,
        description="Switch and health events observed before the call failed",
    )


# =============================================================================
# HEALTH MODELS
# =============================================================================


class ComponentHealth(BaseModel):
    """Health status of an individual system component."""

    name: str = Field(..., description="Component name (e.g., 'store', 'openai')")

    status: Literal["healthy", "degraded", "unhealthy"]

    message: str | None = Field(
        default=None,
        description="Additional status information or error details",
    )


class HealthResponse(BaseModel):
    """Response from the /health endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"]

    service: str = Field(default="forgepad", description="Service identifier")

    version: str = Field(..., description="Application version")

    components: list[ComponentHealth] = Field(default_factory=list)

    uptime_seconds: float | None = Field(default=None, ge=0.0)


# =============================================================================
# CONVERSION UTILITIES
# =============================================================================


def event_to_model(event: RuntimeEvent) -> RuntimeEventModel:
    """Convert a runtime event dataclass into its API model."""
    if isinstance(event, ProviderSwitchEvent):
        return RuntimeEventModel(
            type=event.type,
            from_provider=event.from_provider,
            to_provider=event.to_provider,
            reason=event.reason,
        )
    if isinstance(event, ProviderHealthEvent):
        return RuntimeEventModel(
            type=event.type,
            provider=event.provider,
            health=event.health,
            detail=event.detail,
        )
    raise TypeError(f"Unsupported runtime event: {event!r}")


def tool_to_model(event: ToolInvocationEvent) -> ToolInvocationModel:
    return ToolInvocationModel(provider=event.provider, name=event.name, args=event.args)


def build_chat_response(
    result: "SendResult",
    events: list[RuntimeEvent],
    tool_invocations: list[ToolInvocationEvent],
) -> ChatResponse:
    """
    Build a ChatResponse from a send result and the events captured during it.

    Args:
        result: SendResult returned by the orchestrator.
        events: Switch and health events received through the per-call callbacks.
        tool_invocations: Tool calls received through the per-call callback.

    Returns:
        Complete ChatResponse ready for API return.
    """
    return ChatResponse(
        text=result.text,
        provider=result.provider,
        fallback_used=result.fallback_used,
        events=[event_to_model(e) for e in events],
        tool_invocations=[tool_to_model(t) for t in tool_invocations],
    )
