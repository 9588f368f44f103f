"""
Custom exceptions for the gateway.

Every exception carries a machine-readable ``code`` (or HTTP
``status_code``) that the classifier understands, so errors raised by the
gateway itself are routed by the same policy as errors coming back from
providers.
"""

from typing import Any


class GatewayError(Exception):
    """
    Base exception for all gateway errors.

    All gateway-specific exceptions inherit from this to allow catching
    any gateway error with a single except clause.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.code = code or self.default_code


class ConfigurationError(GatewayError):
    """
    Raised when gateway configuration is invalid.

    Operator-fixable: an unhandled ConfigurationError terminates the
    process with guidance instead of being retried.
    """

    default_code = "INVALID_CONFIG"


class MissingApiKeyError(ConfigurationError):
    """Raised when a provider requires an API key that is not configured."""

    default_code = "MISSING_API_KEY"


class MissingCredentialsError(ConfigurationError):
    """Raised when provider credentials (OAuth, service account) are missing."""

    default_code = "MISSING_CREDENTIALS"


class ProviderError(GatewayError):
    """
    Base exception for failures reported by a model provider.

    Unit-of-work implementations raise these (or subclasses) so that the
    fallback orchestrator can tell throttling and connectivity problems
    apart from everything else.

    Attributes:
        status_code: HTTP status returned by the provider, if any
        provider: Provider identifier (e.g., "anthropic")
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str | None = None,
        status_code: int | None = None,
        provider: str | None = None,
    ):
        super().__init__(message, details, code)
        self.status_code = status_code
        self.provider = provider


class ProviderRateLimitError(ProviderError):
    """
    Raised when the provider throttles the request (HTTP 429).

    This error type triggers fallback to the next target in the chain.
    """

    def __init__(
        self,
        message: str = "Too Many Requests",
        details: dict[str, Any] | None = None,
        provider: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message, details, status_code=429, provider=provider)
        self.retry_after = retry_after


class ProviderConnectionError(ProviderError):
    """
    Raised when the provider endpoint cannot be reached.

    Includes refused connections, resets and DNS failures.
    This error type triggers fallback to the next target in the chain.
    """

    default_code = "ECONNREFUSED"


class ProviderTimeoutError(ProviderConnectionError):
    """
    Raised when a provider call exceeds its deadline.

    Separate from generic connection errors so callers can report it on its own.
    """

    default_code = "ETIMEDOUT"


class EmptyFallbackChainError(ConfigurationError):
    """Raised when a fallback run is started without any target."""

    def __init__(self, message: str = "Fallback chain must contain at least one target"):
        super().__init__(message)
