"""
Schemas module: Pydantic models for API request/response validation.

Public API:
- Request models: ChatMessage, ChatRequest, ValidateKeyRequest, PreferencesUpdate
- Response models: ChatResponse, RuntimeEventModel, ToolInvocationModel,
  ProviderStatus, ProvidersResponse, ValidateKeyResponse
- Error models: ErrorCodes, ErrorDetail, ErrorResponse, status_for_kind
- Health models: ComponentHealth, HealthResponse
- Conversion utilities: build_chat_response, event_to_model, tool_to_model
"""

from forgepad.schemas.chat import (
    # Request models
    ChatMessage,
    ChatRequest,
    PreferencesUpdate,
    ValidateKeyRequest,
    # Response models
    ChatResponse,
    ProviderStatus,
    ProvidersResponse,
    RuntimeEventModel,
    ToolInvocationModel,
    ValidateKeyResponse,
    # Error models
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
    status_for_kind,
    # Health models
    ComponentHealth,
    HealthResponse,
    # Conversion utilities
    build_chat_response,
    event_to_model,
    tool_to_model,
)

__all__ = [
    # Request models
    "ChatMessage",
    "ChatRequest",
    "ValidateKeyRequest",
    "PreferencesUpdate",
    # Response models
    "ChatResponse",
    "RuntimeEventModel",
    "ToolInvocationModel",
    "ProviderStatus",
    "ProvidersResponse",
    "ValidateKeyResponse",
    # Error models
    "ErrorCodes",
    "ErrorDetail",
    "ErrorResponse",
    "status_for_kind",
    # Health models
    "ComponentHealth",
    "HealthResponse",
    # Conversion utilities
    "build_chat_response",
    "event_to_model",
    "tool_to_model",
]
