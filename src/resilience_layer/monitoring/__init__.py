"""Monitoring and metrics instrumentation for the Gateway Resilience Layer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from resilience_layer.monitoring.metrics import (
    fallback_attempts_total,
    fallback_exhausted_total,
    unhandled_rejections_total,
)

__all__ = [
    "unhandled_rejections_total",
    "fallback_attempts_total",
    "fallback_exhausted_total",
]
