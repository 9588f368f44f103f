"""
Unhandled failure guard.

Decides whether the process keeps running or terminates when an asyncio
task fails and nobody retrieves its exception.

Main Components:
    - HandlerRegistry: Opt-in handlers with first refusal over failures
    - decide / Verdict: Pure policy (continue or terminate with exit code)
    - UnhandledRejectionGuard: Loop hook that logs and exits
"""

from resilience_layer.guard.hook import UnhandledRejectionGuard, terminate_process
from resilience_layer.guard.policy import HANDLED, Action, Verdict, decide, verdict_for
from resilience_layer.guard.registry import HandlerRegistry, UnhandledFailureHandler

__all__ = [
    "HandlerRegistry",
    "UnhandledFailureHandler",
    "Action",
    "Verdict",
    "HANDLED",
    "decide",
    "verdict_for",
    "UnhandledRejectionGuard",
    "terminate_process",
]
