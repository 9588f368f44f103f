"""
Fallback orchestrator.

Runs one logical request against an ordered chain of targets (primary
followed by fallbacks) and advances to the next target only when the
failure is provider throttling or a transient network error.

Policy per failed attempt:
    RATE_LIMIT        -> record attempt, try next target
    TRANSIENT_NETWORK -> record attempt, try next target
    anything else     -> re-raise the original exception unchanged

If the last target also fails retryably, FallbackExhausted is raised with
every attempt. Attempts never overlap, no target is tried twice, and no
delay is introduced between attempts. The orchestrator does not log; see
``fallback.runner`` for the logged entry point.
"""

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

from resilience_layer.errors.classifier import (
    MAX_CAUSE_DEPTH,
    is_abort,
    is_rate_limit,
    is_transient_network,
)
from resilience_layer.errors.exceptions import EmptyFallbackChainError
from resilience_layer.errors.signals import AggregateFailure, StructuredFailure, to_signal
from resilience_layer.fallback.exceptions import FallbackExhausted
from resilience_layer.fallback.models import (
    AttemptRecord,
    FallbackResult,
    ModelTarget,
    RetryReason,
)

R = TypeVar("R")

UnitOfWork = Callable[[ModelTarget], "Awaitable[R] | R"]


def retry_reason_for(error: BaseException, max_depth: int = MAX_CAUSE_DEPTH) -> RetryReason:
    """
    Decide whether a failure may advance the chain.

    Cancellations are never retried, even when they wrap a throttling cause.
    "Overloaded" phrasing is reported as RATE_LIMIT.
    """
    if is_abort(error):
        return RetryReason.OTHER
    if is_rate_limit(error, max_depth):
        return RetryReason.RATE_LIMIT
    if is_transient_network(error, max_depth):
        return RetryReason.TRANSIENT_NETWORK
    return RetryReason.OTHER


class FallbackOrchestrator(Generic[R]):
    """
    Sequential fallback across an ordered chain of targets.

    Attributes:
        max_depth: Cause chain depth limit used when classifying failures
    """

    def __init__(self, max_depth: int = MAX_CAUSE_DEPTH):
        self.max_depth = max_depth

    async def run(
        self,
        chain: Sequence[ModelTarget],
        do_work: UnitOfWork,
    ) -> FallbackResult[R]:
        """
        Run the unit of work against each target until one succeeds.

        Args:
            chain: Targets in priority order (must not be empty). Repeated
                targets are tried once, at their first position, so a chain
                with duplicates makes fewer calls than its length
            do_work: Called with each target; may be sync or async

        Returns:
            FallbackResult with the result and all failed predecessors

        Raises:
            EmptyFallbackChainError: Chain is empty (raised before any attempt)
            FallbackExhausted: Every target failed with a retryable error
            Exception: The original error of a non-retryable failure
        """
        targets = _unique(chain)
        if not targets:
            raise EmptyFallbackChainError()

        attempts: list[AttemptRecord] = []
        last_error: Exception | None = None

        for target in targets:
            try:
                outcome = do_work(target)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as err:
                reason = retry_reason_for(err, self.max_depth)
                if reason is RetryReason.OTHER:
                    raise

                attempts.append(
                    AttemptRecord(
                        target=target,
                        reason=reason,
                        message=_message_of(err),
                        error=err,
                    )
                )
                last_error = err
                continue

            return FallbackResult(result=outcome, attempts=attempts, target=target)

        # Every target failed with a retryable error
        raise FallbackExhausted(attempts=attempts, last_error=last_error) from last_error


def _unique(chain: Sequence[ModelTarget]) -> list[ModelTarget]:
    seen: set[ModelTarget] = set()
    targets: list[ModelTarget] = []
    for target in chain:
        if target in seen:
            continue
        seen.add(target)
        targets.append(target)
    return targets


def _message_of(err: BaseException) -> str:
    signal = to_signal(err)
    envelope = signal.envelope if isinstance(signal, AggregateFailure) else signal
    if isinstance(envelope, StructuredFailure) and envelope.message:
        return envelope.message
    return type(err).__name__
