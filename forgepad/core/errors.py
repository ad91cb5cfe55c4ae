"""
Error Classification - Map arbitrary provider failures onto a fixed taxonomy.

Every attempt failure is converted into a ClassifiedError whose kind is one
of the six ErrorKind values. Domain failures raised by ForgePad itself
carry a stable code alongside their kind:

    missing_credential            -> auth
    no_providers_available        -> provider
    structured_validation_failed  -> provider

Classification of foreign exceptions is keyword matching over the message
text. Vendor SDKs do not promise stable wording, so this is a best-effort
heuristic rather than a contract.
"""

from forgepad.core.types import ErrorKind
from forgepad.registry.providers import ProviderKind


# Checked in order; first match wins.
_KEYWORD_RULES: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (ErrorKind.AUTH, ("missing", "invalid key", "unauthorized", "401")),
    (ErrorKind.TIMEOUT, ("timeout",)),
    (ErrorKind.RATE_LIMIT, ("429", "rate")),
    (ErrorKind.NETWORK, ("network", "fetch")),
    (ErrorKind.PROVIDER, ("provider",)),
)


class ClassifiedError(Exception):
    """
    A failure with a machine-readable kind.

    Attributes:
        message: Human-readable description
        kind: One of the ErrorKind values, never unset
        provider: Provider the failure came from, if any
        code: Domain error code for failures raised by ForgePad itself
    """

    code: str | None = None

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        provider: ProviderKind | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = ErrorKind(kind)
        self.provider = provider
        if code is not None:
            self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ProviderTimeoutError(ClassifiedError):
    """Attempt exceeded its deadline."""

    def __init__(self, provider: ProviderKind, timeout_ms: int) -> None:
        super().__init__(
            f"{provider.value} request timed out after {timeout_ms}ms",
            ErrorKind.TIMEOUT,
            provider,
        )
        self.timeout_ms = timeout_ms


class MissingCredentialError(ClassifiedError):
    """No key or token is stored for the provider."""

    code = "missing_credential"

    def __init__(self, provider: ProviderKind) -> None:
        super().__init__(
            f"{provider.value} API key missing ({self.code})",
            ErrorKind.AUTH,
            provider,
        )


class NoProvidersAvailableError(ClassifiedError):
    """The candidate list was empty."""

    code = "no_providers_available"

    def __init__(self) -> None:
        super().__init__(f"No providers available ({self.code})", ErrorKind.PROVIDER)


class StructuredValidationError(ClassifiedError):
    """The provider answered but its output failed structured validation."""

    code = "structured_validation_failed"

    def __init__(self, provider: ProviderKind) -> None:
        super().__init__(
            f"Structured output validation failed for {provider.value} ({self.code})",
            ErrorKind.PROVIDER,
            provider,
        )


def classify_message(message: str) -> ErrorKind:
    """Return the first ErrorKind whose keywords appear in the message."""
    lowered = message.lower()
    for kind, keywords in _KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return kind
    return ErrorKind.UNKNOWN


def classify_error(provider: ProviderKind, error: BaseException) -> ClassifiedError:
    """
    Classify a failure raised during an attempt.

    An error that is already classified is returned unchanged, so
    classification is idempotent. Anything else is wrapped in a new
    ClassifiedError that keeps the original as its __cause__.

    Args:
        provider: Provider the attempt was made against.
        error: The raised exception.

    Returns:
        ClassifiedError with a kind from the fixed taxonomy.
    """
    if isinstance(error, ClassifiedError):
        return error

    message = str(error) or f"{provider.value} request failed"
    classified = ClassifiedError(message, classify_message(message), provider)
    classified.__cause__ = error
    return classified
