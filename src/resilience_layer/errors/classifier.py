"""
Failure classification for gateway errors.

Maps any failure value to one of a closed set of categories. Each category
has its own predicate so callers can apply their own precedence:

- ``is_abort``: intentional cancellation
- ``is_fatal``: unrecoverable runtime fault
- ``is_config``: operator-fixable configuration fault
- ``is_transient_network``: infrastructure blip
- ``is_rate_limit``: provider throttling

All predicates are pure and total: they never raise, and cause chains are
walked with a visited set plus a depth bound, so cyclic chains terminate.
``classify`` applies the process-level precedence in one call.
"""

import re
from enum import Enum
from typing import Any

from resilience_layer.errors.signals import (
    ABORT_ERROR_NAME,
    AggregateFailure,
    ErrorSignal,
    OpaqueFailure,
    StructuredFailure,
    to_signal,
)

MAX_CAUSE_DEPTH = 10

ABORT_MESSAGE = "This operation was aborted"
FETCH_FAILED_MESSAGE = "fetch failed"

FATAL_ERROR_CODES = frozenset(
    {
        "ERR_OUT_OF_MEMORY",
        "ERR_SCRIPT_EXECUTION_TIMEOUT",
        "ERR_WORKER_OUT_OF_MEMORY",
        "ERR_WORKER_UNCAUGHT_EXCEPTION",
        "ERR_WORKER_INITIALIZATION_FAILED",
    }
)

CONFIG_ERROR_CODES = frozenset({"INVALID_CONFIG", "MISSING_API_KEY", "MISSING_CREDENTIALS"})

# Temporary connectivity problems that resolve on their own
TRANSIENT_NETWORK_CODES = frozenset(
    {
        "ECONNRESET",
        "ECONNREFUSED",
        "ENOTFOUND",
        "ETIMEDOUT",
        "ESOCKETTIMEDOUT",
        "ECONNABORTED",
        "EPIPE",
        "EHOSTUNREACH",
        "ENETUNREACH",
        "EAI_AGAIN",
        "UND_ERR_CONNECT_TIMEOUT",
        "UND_ERR_DNS_RESOLVE_FAILED",
        "UND_ERR_CONNECT",
        "UND_ERR_SOCKET",
        "UND_ERR_HEADERS_TIMEOUT",
        "UND_ERR_BODY_TIMEOUT",
    }
)

RATE_LIMIT_STATUSES = (429, "429")

RATE_LIMIT_PATTERNS = (
    re.compile(r"rate[_ ]?limit", re.IGNORECASE),
    re.compile(r"too many requests", re.IGNORECASE),
    re.compile(r"429"),
    re.compile(r"quota", re.IGNORECASE),  # "quota exceeded", "exceeded your current quota"
    re.compile(r"resource[_ ]?exhausted", re.IGNORECASE),
    re.compile(r"overloaded", re.IGNORECASE),
)


class Classification(str, Enum):
    """
    Closed taxonomy of failure categories.

    UNCLASSIFIED is the fail-safe verdict when no predicate matches.
    """

    ABORT = "abort"
    FATAL = "fatal"
    CONFIG = "config"
    TRANSIENT_NETWORK = "transient_network"
    RATE_LIMIT = "rate_limit"
    UNCLASSIFIED = "unclassified"


def is_abort(err: Any) -> bool:
    """
    Check if a failure is an intentional cancellation.

    Matches ``name == "AbortError"`` (``asyncio.CancelledError`` normalizes
    to that name) or the exact message ``"This operation was aborted"``.
    Near-miss phrasings such as ``"Operation aborted"`` do not match.
    """
    envelope = _envelope(to_signal(err))
    if envelope is None:
        return False
    return envelope.name == ABORT_ERROR_NAME or envelope.message == ABORT_MESSAGE


def is_fatal(err: Any) -> bool:
    """Check the failure (or its direct cause) for a fatal runtime code."""
    code = _code_with_cause(to_signal(err))
    return code is not None and code in FATAL_ERROR_CODES


def is_config(err: Any) -> bool:
    """Check the failure (or its direct cause) for a configuration error code."""
    code = _code_with_cause(to_signal(err))
    return code is not None and code in CONFIG_ERROR_CODES


def is_transient_network(err: Any, max_depth: int = MAX_CAUSE_DEPTH) -> bool:
    """
    Check if a failure is a transient network error.

    These are temporary connectivity issues that will resolve on their own
    and should neither crash the process nor fail a request that has other
    targets left to try.

    Args:
        err: Any failure value
        max_depth: Maximum number of cause/member hops to follow

    Returns:
        True if a transient network code is found anywhere in the cause
        chain, or in any member of an aggregate failure
    """
    return _is_transient_network(err, 0, set(), max_depth)


def is_rate_limit(err: Any, max_depth: int = MAX_CAUSE_DEPTH) -> bool:
    """
    Check if a failure is provider throttling.

    Detected by an HTTP 429 status (int or string), or by rate limit
    phrasing in the message ("rate limit", "too many requests", "quota",
    "resource exhausted", "overloaded", "429"). Cause chains are followed.

    Args:
        err: Any failure value
        max_depth: Maximum number of cause/member hops to follow

    Returns:
        True if the failure or anything it wraps indicates throttling
    """
    return _is_rate_limit(err, 0, set(), max_depth)


def classify(err: Any, max_depth: int = MAX_CAUSE_DEPTH) -> Classification:
    """
    Classify a failure using process-level precedence.

    Abort is checked first: cancellations are intentional even when the
    same error also carries a fatal code.
    """
    if is_abort(err):
        return Classification.ABORT
    if is_fatal(err):
        return Classification.FATAL
    if is_config(err):
        return Classification.CONFIG
    if is_transient_network(err, max_depth):
        return Classification.TRANSIENT_NETWORK
    if is_rate_limit(err, max_depth):
        return Classification.RATE_LIMIT
    return Classification.UNCLASSIFIED


def _envelope(signal: ErrorSignal | None) -> StructuredFailure | None:
    if isinstance(signal, StructuredFailure):
        return signal
    if isinstance(signal, AggregateFailure):
        return signal.envelope
    return None


def _code_with_cause(signal: ErrorSignal | None) -> str | None:
    envelope = _envelope(signal)
    if envelope is None:
        return None
    if envelope.code:
        return envelope.code
    cause = _envelope(to_signal(envelope.cause))
    return cause.code if cause is not None else None


def _is_transient_network(value: Any, depth: int, seen: set[int], max_depth: int) -> bool:
    if depth > max_depth or id(value) in seen:
        return False
    signal = to_signal(value)
    envelope = _envelope(signal)
    if envelope is None:
        return False
    seen.add(id(value))

    code = _code_with_cause(signal)
    if code is not None and code in TRANSIENT_NETWORK_CODES:
        return True

    # "fetch failed" TypeError from an HTTP client: the cause decides if present
    if _is_type_error(value, envelope) and envelope.message == FETCH_FAILED_MESSAGE:
        if envelope.has_cause:
            return _is_transient_network(envelope.cause, depth + 1, seen, max_depth)
        return True

    if envelope.has_cause and _is_transient_network(envelope.cause, depth + 1, seen, max_depth):
        return True

    if isinstance(signal, AggregateFailure):
        return any(
            _is_transient_network(member, depth + 1, seen, max_depth)
            for member in signal.members
        )

    return False


def _is_type_error(value: Any, envelope: StructuredFailure) -> bool:
    if isinstance(value, BaseException):
        return isinstance(value, TypeError)
    return envelope.name == "TypeError"


def _is_rate_limit(value: Any, depth: int, seen: set[int], max_depth: int) -> bool:
    if depth > max_depth or id(value) in seen:
        return False
    signal = to_signal(value)
    if signal is None:
        return False
    seen.add(id(value))

    if isinstance(signal, OpaqueFailure):
        return _matches_rate_limit(signal.text)

    envelope = _envelope(signal)
    if envelope.status in RATE_LIMIT_STATUSES:
        return True
    if _matches_rate_limit(envelope.message):
        return True

    if envelope.has_cause and _is_rate_limit(envelope.cause, depth + 1, seen, max_depth):
        return True

    if isinstance(signal, AggregateFailure):
        return any(
            _is_rate_limit(member, depth + 1, seen, max_depth) for member in signal.members
        )

    return False


def _matches_rate_limit(text: str) -> bool:
    return any(pattern.search(text) for pattern in RATE_LIMIT_PATTERNS)
