"""
Model fallback across an ordered chain of provider/model targets.

A failed attempt advances to the next target only for provider throttling
(rate limit, quota, overloaded) and transient network errors. Any other
failure propagates unchanged; cancellations always short-circuit.

Main Components:
    - FallbackOrchestrator: Sequential, silent fallback loop
    - run_with_model_fallback: Settings-driven, logged entry point
    - ModelTarget / AttemptRecord / FallbackResult: Run data models
    - FallbackExhausted: Raised when every target failed retryably

Usage:
    >>> from resilience_layer.fallback import run_with_model_fallback
    >>> result = await run_with_model_fallback(call_provider)
"""

from resilience_layer.fallback.exceptions import FallbackExhausted
from resilience_layer.fallback.models import (
    AttemptRecord,
    FallbackResult,
    ModelTarget,
    RetryReason,
)
from resilience_layer.fallback.orchestrator import FallbackOrchestrator, retry_reason_for
from resilience_layer.fallback.runner import resolve_fallback_chain, run_with_model_fallback

__all__ = [
    "FallbackOrchestrator",
    "FallbackExhausted",
    "FallbackResult",
    "AttemptRecord",
    "ModelTarget",
    "RetryReason",
    "retry_reason_for",
    "resolve_fallback_chain",
    "run_with_model_fallback",
]
