"""Custom Prometheus metrics for the Gateway Resilience Layer.

These metrics are exposed by the host application's /metrics endpoint.
Alert rules should be configured for:
- unhandled_rejections_total (any terminate action; sustained continue rate)
- fallback_attempts_total (high rate indicates provider instability)
- fallback_exhausted_total (requests failing on every configured target)
"""

from prometheus_client import Counter

# === Unhandled Failure Guard Metrics ===

unhandled_rejections_total = Counter(
    "unhandled_rejections_total",
    "Total unhandled asyncio task failures by classification and action",
    ["classification", "action"],
)
"""
Unhandled failures counter.

Labels:
- classification: abort, fatal, config, transient_network, rate_limit, unclassified, handled
- action: continue (process kept running), terminate (process exit requested)

Alert thresholds:
- CRITICAL: any action="terminate"
- WARN: continue rate > 1/min for transient_network or rate_limit
"""

# === Fallback Metrics ===

fallback_attempts_total = Counter(
    "fallback_attempts_total",
    "Total failed attempts that advanced to the next fallback target",
    ["reason"],
)
"""
Failed fallback attempts counter.

Labels:
- reason: rate_limit, transient_network

Alert thresholds:
- WARN: rate > 10% of total requests
- CRITICAL: rate > 30% of total requests
"""

fallback_exhausted_total = Counter(
    "fallback_exhausted_total",
    "Total requests that failed on every target of the fallback chain",
)
"""
Exhausted fallback chains counter.

Alert thresholds:
- WARN: any increase
"""
