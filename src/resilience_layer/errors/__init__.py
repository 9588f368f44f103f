"""
Failure classification for the gateway.

Normalizes heterogeneous failure values (exceptions, exception groups,
provider payloads, plain strings) and classifies them into a closed
taxonomy used by both the unhandled failure guard and the fallback
orchestrator.

Main Components:
    - to_signal: Normalize any value into an ErrorSignal
    - is_abort / is_fatal / is_config / is_transient_network / is_rate_limit
    - classify: Single verdict using process-level precedence
    - GatewayError and subclasses: Gateway exceptions with classifiable codes

Usage:
    >>> from resilience_layer.errors import Classification, classify
    >>> classify(ConnectionResetError())
    <Classification.TRANSIENT_NETWORK: 'transient_network'>
"""

from resilience_layer.errors.classifier import (
    Classification,
    classify,
    is_abort,
    is_config,
    is_fatal,
    is_rate_limit,
    is_transient_network,
)
from resilience_layer.errors.exceptions import (
    ConfigurationError,
    EmptyFallbackChainError,
    GatewayError,
    MissingApiKeyError,
    MissingCredentialsError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from resilience_layer.errors.formatting import format_error
from resilience_layer.errors.signals import (
    AggregateFailure,
    ErrorSignal,
    OpaqueFailure,
    StructuredFailure,
    to_signal,
)

__all__ = [
    "Classification",
    "classify",
    "is_abort",
    "is_config",
    "is_fatal",
    "is_rate_limit",
    "is_transient_network",
    "format_error",
    "to_signal",
    "ErrorSignal",
    "StructuredFailure",
    "AggregateFailure",
    "OpaqueFailure",
    "GatewayError",
    "ConfigurationError",
    "MissingApiKeyError",
    "MissingCredentialsError",
    "EmptyFallbackChainError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
]
