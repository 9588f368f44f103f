"""
Process-level policy for unhandled failures.

Turns a failure into an abstract verdict (continue, or terminate with an
exit code) without performing any effect, so the policy can be tested
without stopping the test process. ``UnhandledRejectionGuard`` in
``guard.hook`` is the thin shell that logs and exits.

Decision table (checked top to bottom, first match wins):

    handled by a registered handler -> continue, nothing logged
    ABORT             -> warning, continue
    FATAL             -> error, terminate(1)
    CONFIG            -> error, terminate(1)
    TRANSIENT_NETWORK -> warning, continue
    RATE_LIMIT        -> warning, continue
    UNCLASSIFIED      -> error, terminate(1)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from resilience_layer.errors.classifier import MAX_CAUSE_DEPTH, Classification, classify
from resilience_layer.guard.registry import HandlerRegistry

TERMINATE_EXIT_CODE = 1


class Action(str, Enum):
    """What the process should do after an unhandled failure."""

    CONTINUE = "continue"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class Verdict:
    """
    Outcome of the unhandled failure policy.

    Attributes:
        action: Continue running or terminate the process
        classification: Failure category (None when a handler claimed it)
        exit_code: Process exit code for TERMINATE, None otherwise
        log_level: stdlib logging level for the decision log line
        summary: Human-readable description of the decision
    """

    action: Action
    classification: Classification | None
    exit_code: int | None
    log_level: int
    summary: str

    @property
    def should_terminate(self) -> bool:
        return self.action is Action.TERMINATE


HANDLED = Verdict(
    action=Action.CONTINUE,
    classification=None,
    exit_code=None,
    log_level=logging.DEBUG,
    summary="Handled by registered handler",
)

_DECISIONS: dict[Classification, tuple[Action, int, str]] = {
    # Cancellations are intentional (e.g., graceful shutdown)
    Classification.ABORT: (Action.CONTINUE, logging.WARNING, "Suppressed AbortError"),
    Classification.FATAL: (Action.TERMINATE, logging.ERROR, "FATAL unhandled failure"),
    Classification.CONFIG: (
        Action.TERMINATE,
        logging.ERROR,
        "CONFIGURATION ERROR - requires fix",
    ),
    Classification.TRANSIENT_NETWORK: (
        Action.CONTINUE,
        logging.WARNING,
        "Non-fatal unhandled failure (continuing)",
    ),
    # The fallback orchestrator should have handled these
    Classification.RATE_LIMIT: (
        Action.CONTINUE,
        logging.WARNING,
        "Rate limit error (continuing, fallback should handle)",
    ),
    Classification.UNCLASSIFIED: (Action.TERMINATE, logging.ERROR, "Unhandled task failure"),
}


def verdict_for(classification: Classification) -> Verdict:
    """Build the verdict for an already classified failure."""
    action, log_level, summary = _DECISIONS[classification]
    return Verdict(
        action=action,
        classification=classification,
        exit_code=TERMINATE_EXIT_CODE if action is Action.TERMINATE else None,
        log_level=log_level,
        summary=summary,
    )


def decide(
    reason: Any,
    registry: HandlerRegistry,
    max_depth: int = MAX_CAUSE_DEPTH,
) -> Verdict:
    """
    Decide what the process should do about an unhandled failure.

    Args:
        reason: The failure value
        registry: Handlers offered first refusal
        max_depth: Cause chain depth limit for classification

    Returns:
        Verdict describing the action; never performs it
    """
    if registry.is_handled(reason):
        return HANDLED
    return verdict_for(classify(reason, max_depth))
