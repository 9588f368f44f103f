"""
Fallback orchestrator exceptions.

This module defines the exception raised when every target in a fallback
chain has failed with a retryable error.
"""

from typing import TYPE_CHECKING

from resilience_layer.errors.exceptions import GatewayError

if TYPE_CHECKING:
    from resilience_layer.fallback.models import AttemptRecord


class FallbackExhausted(GatewayError):
    """
    Raised when all targets of a fallback chain fail.

    Only raised when every failure was retryable (rate limit or transient
    network); any other failure propagates unchanged instead. Carries the
    complete attempt history and is chained from the last error.

    Attributes:
        attempts: One AttemptRecord per target, in chain order
        last_error: Failure of the final target
    """

    def __init__(self, attempts: list["AttemptRecord"], last_error: BaseException) -> None:
        """
        Initialize FallbackExhausted exception.

        Args:
            attempts: Complete attempt history
            last_error: Final error
        """
        self.attempts = attempts
        self.last_error = last_error

        summary = " | ".join(
            f"{attempt.target}: {attempt.message} ({attempt.reason.value})" for attempt in attempts
        )
        super().__init__(
            f"All models failed ({len(attempts)}): {summary}",
            details={
                "attempts": [
                    {
                        "target": str(attempt.target),
                        "reason": attempt.reason.value,
                        "message": attempt.message,
                    }
                    for attempt in attempts
                ],
            },
        )
