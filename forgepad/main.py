"""
ForgePad: FastAPI Application Entry Point

This module initializes the FastAPI application and defines the endpoints:
- /health: Health check endpoint
- /config: Non-sensitive configuration values
- /providers: Provider registry, credential status and last health
- /preferences: Default provider and fallback preference
- /chat: Send a conversation through the fallback orchestrator
- /providers/{provider}/validate: Check (and optionally store) an API key

The application uses a lifespan context manager to:
1. Load configuration and configure logging
2. Open the provider store
3. Construct the single FallbackOrchestrator shared by all requests
"""

from contextlib import asynccontextmanager
import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from forgepad import __version__
from forgepad.config import Settings, configure_logging, get_settings
from forgepad.core.errors import ClassifiedError
from forgepad.core.types import (
    HealthState,
    RuntimeEvent,
    SendOptions,
    ToolInvocationEvent,
)
from forgepad.dispatcher.orchestrator import FallbackOrchestrator
from forgepad.registry.providers import ProviderKind, get_provider_registry
from forgepad.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ComponentHealth,
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    PreferencesUpdate,
    ProvidersResponse,
    ProviderStatus,
    ValidateKeyRequest,
    ValidateKeyResponse,
    build_chat_response,
    event_to_model,
    status_for_kind,
)
from forgepad.storage.store import ProviderStore

logger = logging.getLogger(__name__)

_start_time: float = 0.0


def build_orchestrator(settings: Settings) -> FallbackOrchestrator:
    """Open the store and create the process-wide orchestrator."""
    store = ProviderStore(path=settings.store_path, settings=settings)
    return FallbackOrchestrator(store, settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup/shutdown events.

    On startup:
    - Loads configuration from environment
    - Configures logging
    - Builds the orchestrator and stores it on app.state

    On shutdown:
    - Logs shutdown message
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("=" * 60)
    logger.info("ForgePad starting up...")
    logger.info("=" * 60)
    logger.info(f"Default provider: {settings.default_provider.value}")
    logger.info(f"Fallback: {'enabled' if settings.provider_fallback_enabled else 'disabled'}")
    logger.info(f"Request timeout: {settings.request_timeout_ms}ms")
    logger.info(f"Store: {settings.store_path or 'in-memory'}")
    if settings.gemini_api_key:
        logger.info("Gemini API key: configured via environment")

    orchestrator = build_orchestrator(settings)
    app.state.orchestrator = orchestrator

    configured = orchestrator.store.get_configured_providers()
    logger.info(
        f"Configured providers: {', '.join(p.value for p in configured) or 'none'}"
    )

    # Record start time for uptime tracking
    global _start_time
    _start_time = time.time()

    logger.info("=" * 60)
    logger.info("ForgePad ready to accept requests")

    yield  # Application runs here

    logger.info("ForgePad shutting down...")


app = FastAPI(
    title="ForgePad",
    description="AI provider routing with timeout, classification and fallback",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_orchestrator(request: Request) -> FallbackOrchestrator:
    """Dependency returning the orchestrator created at startup."""
    return request.app.state.orchestrator


@app.get("/")
async def root():
    """
    Root endpoint with API information.
    """
    return {
        "name": "ForgePad",
        "description": "AI provider routing with fallback",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "providers": "/providers",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check system health and component status.",
)
async def health_check(orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    """
    Health check endpoint for monitoring.

    Reports the store, and one component per provider built from its last
    recorded health. Overall status is degraded when no provider has a
    usable credential.
    """
    components = [ComponentHealth(name="store", status="healthy")]
    configured = orchestrator.store.get_configured_providers()

    for provider, health in orchestrator.provider_health().items():
        if health is HealthState.HEALTHY:
            status = "healthy"
        elif health is HealthState.ERROR:
            status = "unhealthy"
        else:
            status = "degraded"
        components.append(
            ComponentHealth(
                name=provider.value,
                status=status,
                message=f"{health.value}; {'configured' if provider in configured else 'not configured'}",
            )
        )

    uptime = time.time() - _start_time if _start_time > 0 else 0.0

    return HealthResponse(
        status="healthy" if configured else "degraded",
        service="forgepad",
        version=__version__,
        components=components,
        uptime_seconds=uptime,
    )


@app.get("/config")
async def show_config(settings: Settings = Depends(get_settings)):
    """
    Returns non-sensitive configuration values.

    The Gemini override key is SecretStr and is NOT exposed here.
    """
    return {
        "routing": {
            "default_provider": settings.default_provider.value,
            "provider_fallback_enabled": settings.provider_fallback_enabled,
            "request_timeout_ms": settings.request_timeout_ms,
            "validation_timeout_ms": settings.validation_timeout_ms,
            "priority_order": [p.value for p in get_provider_registry().priority_order()],
        },
        "store": {"persistent": settings.store_path is not None},
        "server": {
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
        },
        "logging": {"level": settings.log_level},
        "env_overrides": {
            "gemini": bool(settings.gemini_api_key and settings.gemini_api_key.get_secret_value()),
        },
    }


@app.get("/providers", response_model=ProvidersResponse)
async def list_providers(orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    """
    List providers with their credential status and last recorded health.
    """
    store = orchestrator.store
    registry = get_provider_registry()
    configured = store.get_configured_providers()
    prefs = store.get_preferences()

    statuses = []
    for metadata in registry.list_providers():
        record = store.get_provider_health(metadata.provider)
        statuses.append(
            ProviderStatus(
                provider=metadata.provider,
                display_name=metadata.display_name,
                api_model_name=metadata.api_model_name,
                configured=metadata.provider in configured,
                env_override=store.has_env_override(metadata.provider),
                health=orchestrator.health.read(metadata.provider),
                detail=record.detail if record else None,
                free_tier=metadata.free_tier,
            )
        )

    return ProvidersResponse(
        providers=statuses,
        default_provider=prefs.default_provider,
        provider_fallback_enabled=prefs.provider_fallback_enabled,
        priority_order=registry.priority_order(),
    )


@app.put("/preferences")
async def update_preferences(
    update: PreferencesUpdate,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    """Update the default provider and/or the fallback preference."""
    prefs = orchestrator.store.save_preferences(
        default_provider=update.default_provider,
        provider_fallback_enabled=update.provider_fallback_enabled,
    )
    return {
        "default_provider": prefs.default_provider.value,
        "provider_fallback_enabled": prefs.provider_fallback_enabled,
    }


@app.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        401: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
    summary="Send a conversation",
    description="Send a conversation to the selected provider, falling back on failure.",
)
async def chat(
    request: ChatRequest,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    """
    Main chat endpoint.

    Flow:
    1. Convert the request into Message values and SendOptions
    2. Collect this call's switch, health and tool events through callbacks
    3. Return the result with the collected events

    A provider failure returns the classified error together with the
    events collected before it.
    """
    events: list[RuntimeEvent] = []
    tools: list[ToolInvocationEvent] = []

    options = SendOptions(
        provider=request.provider,
        system_prompt=request.system_prompt,
        timeout_ms=request.timeout_ms,
        enable_fallback=request.enable_fallback,
        on_tool_invocation=tools.append,
        on_provider_switch=events.append,
        on_provider_health=events.append,
    )

    try:
        result = await orchestrator.send_message(
            [m.to_message() for m in request.messages], options
        )
    except ClassifiedError as e:
        return classified_error_response(e, events)
    return build_chat_response(result, events, tools)


@app.post(
    "/providers/{provider}/validate",
    response_model=ValidateKeyResponse,
    summary="Validate an API key",
)
async def validate_key(
    provider: ProviderKind,
    request: ValidateKeyRequest,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    """
    Issue one minimal request with the key and report whether it worked.

    When save=true and the key is valid it is written to the store.
    """
    valid = await orchestrator.validate_key(provider, request.key)
    saved = False
    if valid and request.save:
        orchestrator.store.save_credentials({provider: request.key.strip()})
        saved = True
    return ValidateKeyResponse(provider=provider, valid=valid, saved=saved)


def classified_error_response(
    exc: ClassifiedError, events: list[RuntimeEvent] | None = None
) -> JSONResponse:
    """Error body for a classified failure; status and code follow its kind."""
    status_code, code = status_for_kind(exc.kind)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=code,
                message=exc.message,
                kind=exc.kind,
                provider=exc.provider,
            ),
            events=[event_to_model(e) for e in events or []],
        ).model_dump(mode="json"),
    )


@app.exception_handler(ClassifiedError)
async def classified_error_handler(request: Request, exc: ClassifiedError) -> JSONResponse:
    """
    Handle provider failures surfaced by the orchestrator.

    The status code and error code follow the failure kind so clients can
    prompt for a new key, back off, or retry.
    """
    return classified_error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Returns a consistent error response format with the first validation
    error's details for client-side error handling.
    """
    errors = exc.errors()
    first_error = errors[0] if errors else {}

    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": ErrorCodes.VALIDATION_ERROR,
                "message": first_error.get("msg", "Validation failed"),
                "field": ".".join(str(loc) for loc in first_error.get("loc", [])),
            }
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions with consistent format.
    """
    detail = exc.detail
    if isinstance(detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": detail})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "HTTP_ERROR", "message": str(detail)}},
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full exception for debugging and returns a generic error
    response to avoid leaking implementation details.
    """
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": ErrorCodes.INTERNAL_ERROR,
                "message": "An unexpected error occurred",
            }
        },
    )
