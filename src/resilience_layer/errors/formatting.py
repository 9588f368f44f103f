"""Rendering of failure values for log lines."""

import traceback
from typing import Any

from resilience_layer.errors.signals import OpaqueFailure, StructuredFailure, to_signal


def format_error(value: Any) -> str:
    """
    Render a failure as message plus traceback when available.

    Exceptions are rendered with their full traceback (including chained
    causes). Mappings and objects use their ``message`` and ``stack``
    fields when present; anything else falls back to ``repr``.
    """
    if isinstance(value, BaseException):
        try:
            return "".join(traceback.format_exception(value)).rstrip()
        except Exception:
            return f"{type(value).__name__}: {value!r}"

    signal = to_signal(value)
    if isinstance(signal, OpaqueFailure):
        return signal.text
    if isinstance(signal, StructuredFailure) and signal.message:
        stack = _stack_of(value)
        return f"{signal.message}\n{stack}" if stack else signal.message
    try:
        return repr(value)
    except Exception:
        return object.__repr__(value)


def _stack_of(value: Any) -> str | None:
    try:
        stack = value.get("stack") if hasattr(value, "get") else getattr(value, "stack", None)
    except Exception:
        return None
    return stack if isinstance(stack, str) and stack else None
