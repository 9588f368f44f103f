"""
Normalization of arbitrary failure values into error signals.

Failures reach the gateway in many shapes: Python exceptions (with or
without ``raise ... from``), provider SDK exceptions carrying a
``status_code``, httpx transport errors, exception groups, decoded JSON
error payloads, or plain strings. ``to_signal`` turns any of them into one
of three shapes the classifier pattern-matches on:

- ``StructuredFailure``: name/message/code/status plus an optional cause
- ``AggregateFailure``: a structured envelope bundling member failures
- ``OpaqueFailure``: nothing but text

Causes are kept as raw values and normalized only when the classifier
walks into them, so cyclic cause chains are never expanded eagerly.

Normalization never raises: attribute access and ``str()`` on foreign
objects are guarded.
"""

import asyncio
import errno
import socket
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

import httpx

ABORT_ERROR_NAME = "AbortError"

# httpx transport errors mapped onto the HTTP-client code family.
# Order matters: subclasses before their bases.
_HTTPX_CODES: tuple[tuple[type[Exception], str], ...] = (
    (httpx.ConnectTimeout, "UND_ERR_CONNECT_TIMEOUT"),
    (httpx.ReadTimeout, "UND_ERR_BODY_TIMEOUT"),
    (httpx.WriteTimeout, "UND_ERR_SOCKET"),
    (httpx.PoolTimeout, "UND_ERR_SOCKET"),
    (httpx.ConnectError, "UND_ERR_CONNECT"),
    (httpx.ReadError, "UND_ERR_SOCKET"),
    (httpx.WriteError, "UND_ERR_SOCKET"),
    (httpx.RemoteProtocolError, "UND_ERR_SOCKET"),
)

# Connection errors constructed without an errno
_OSERROR_CODES: tuple[tuple[type[OSError], str], ...] = (
    (ConnectionResetError, "ECONNRESET"),
    (ConnectionRefusedError, "ECONNREFUSED"),
    (ConnectionAbortedError, "ECONNABORTED"),
    (BrokenPipeError, "EPIPE"),
    (TimeoutError, "ETIMEDOUT"),
)

_GAIERROR_CODES: dict[int, str] = {
    socket.EAI_AGAIN: "EAI_AGAIN",
    socket.EAI_NONAME: "ENOTFOUND",
}
if hasattr(socket, "EAI_NODATA"):
    _GAIERROR_CODES[socket.EAI_NODATA] = "ENOTFOUND"

_STATUS_KEYS = ("status", "status_code", "statusCode")
_SIGNAL_ATTRS = ("name", "message", "code", "cause", "errors") + _STATUS_KEYS


@dataclass(frozen=True)
class StructuredFailure:
    """A failure exposing some of name, message, code, status and cause."""

    message: str = ""
    name: str | None = None
    code: str | None = None
    status: int | str | None = None
    cause: Any = None

    @property
    def has_cause(self) -> bool:
        return self.cause is not None


@dataclass(frozen=True)
class AggregateFailure:
    """A container failure bundling independent member failures."""

    members: tuple[Any, ...]
    envelope: StructuredFailure


@dataclass(frozen=True)
class OpaqueFailure:
    """A primitive failure value (string, number, unknown object)."""

    text: str


ErrorSignal = Union[StructuredFailure, AggregateFailure, OpaqueFailure]


def to_signal(value: Any) -> ErrorSignal | None:
    """
    Normalize any failure value into an ErrorSignal.

    Args:
        value: Exception, mapping, object, primitive, or an ErrorSignal

    Returns:
        The normalized signal, or None when ``value`` is None
    """
    if value is None:
        return None
    if isinstance(value, (StructuredFailure, AggregateFailure, OpaqueFailure)):
        return value
    if isinstance(value, BaseExceptionGroup):
        return AggregateFailure(members=tuple(value.exceptions), envelope=_from_exception(value))
    if isinstance(value, BaseException):
        return _from_exception(value)
    if isinstance(value, Mapping):
        envelope = _from_fields(lambda key: _safe_get(value, key))
        errors = _safe_get(value, "errors")
        if isinstance(errors, (list, tuple)) and errors:
            return AggregateFailure(members=tuple(errors), envelope=envelope)
        return envelope
    if isinstance(value, bytes):
        return OpaqueFailure(text=value.decode("utf-8", errors="replace"))
    if isinstance(value, (str, int, float, bool)):
        return OpaqueFailure(text=str(value))
    if any(_safe_getattr(value, attr) is not None for attr in _SIGNAL_ATTRS):
        envelope = _from_fields(lambda key: _safe_getattr(value, key))
        errors = _safe_getattr(value, "errors")
        if isinstance(errors, (list, tuple)) and errors:
            return AggregateFailure(members=tuple(errors), envelope=envelope)
        return envelope
    return OpaqueFailure(text=_text_of(value))


def _from_exception(exc: BaseException) -> StructuredFailure:
    name = _safe_getattr(exc, "name")
    if not isinstance(name, str):
        name = ABORT_ERROR_NAME if isinstance(exc, asyncio.CancelledError) else type(exc).__name__

    message = _safe_getattr(exc, "message")
    if not isinstance(message, str):
        message = _safe_str(exc)

    cause = _safe_getattr(exc, "cause")
    if cause is None:
        cause = exc.__cause__

    return StructuredFailure(
        message=message,
        name=name,
        code=_exception_code(exc),
        status=_exception_status(exc),
        cause=cause,
    )


def _from_fields(get: Callable[[str], Any]) -> StructuredFailure:
    name = get("name")
    message = get("message")
    status = None
    for key in _STATUS_KEYS:
        status = _as_status(get(key))
        if status is not None:
            break
    return StructuredFailure(
        message=message if isinstance(message, str) else "",
        name=name if isinstance(name, str) else None,
        code=_as_code(get("code")),
        status=status,
        cause=get("cause"),
    )


def _exception_code(exc: BaseException) -> str | None:
    explicit = _as_code(_safe_getattr(exc, "code"))
    if explicit:
        return explicit

    for exc_type, code in _HTTPX_CODES:
        if isinstance(exc, exc_type):
            return code

    if isinstance(exc, socket.gaierror):
        return _GAIERROR_CODES.get(exc.errno)

    if isinstance(exc, OSError):
        if exc.errno in errno.errorcode:
            return errno.errorcode[exc.errno]
        for exc_type, code in _OSERROR_CODES:
            if isinstance(exc, exc_type):
                return code

    if isinstance(exc, MemoryError):
        return "ERR_OUT_OF_MEMORY"

    return None


def _exception_status(exc: BaseException) -> int | str | None:
    for key in _STATUS_KEYS:
        status = _as_status(_safe_getattr(exc, key))
        if status is not None:
            return status
    if isinstance(exc, httpx.HTTPStatusError):
        return _as_status(_safe_getattr(_safe_getattr(exc, "response"), "status_code"))
    return None


def _as_code(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, int):
        return str(value)
    return None


def _as_status(value: Any) -> int | str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        return value
    return None


def _safe_getattr(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    try:
        return getattr(obj, name, None)
    except Exception:
        return None


def _safe_get(mapping: Mapping, key: str) -> Any:
    try:
        return mapping.get(key)
    except Exception:
        return None


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def _text_of(value: Any) -> str:
    # Default object reprs embed memory addresses, which must not feed pattern matching
    value_type = type(value)
    if value_type.__str__ is object.__str__ and value_type.__repr__ is object.__repr__:
        return f"<{value_type.__name__}>"
    return _safe_str(value)
