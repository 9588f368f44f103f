"""
Registry of opt-in handlers for unhandled failures.

Subsystems that know how to deal with a specific failure (e.g., a
streaming session that expects its own cancellation) register a predicate
here. The guard consults the registry before applying the global policy,
giving each handler first refusal.
"""

import threading
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

UnhandledFailureHandler = Callable[[Any], bool]


class HandlerRegistry:
    """
    Insertion-ordered set of failure handlers.

    Created at process start and drained with ``clear()`` at shutdown.
    Registration and unregistration are safe from any thread and from
    inside a handler that is currently running: ``is_handled`` iterates a
    snapshot and runs handlers outside the lock.
    """

    def __init__(self) -> None:
        self._handlers: dict[UnhandledFailureHandler, None] = {}
        self._lock = threading.Lock()

    def register(self, handler: UnhandledFailureHandler) -> Callable[[], None]:
        """
        Add a handler.

        Args:
            handler: Predicate returning True when it has taken care of the failure

        Returns:
            Callable that removes the handler again (safe to call twice)
        """
        with self._lock:
            self._handlers[handler] = None

        def unregister() -> None:
            with self._lock:
                self._handlers.pop(handler, None)

        return unregister

    def is_handled(self, reason: Any) -> bool:
        """
        Offer a failure to each registered handler in insertion order.

        The first handler returning True wins. A handler that raises is
        logged and treated as if it returned False.

        Returns:
            True if any handler claimed the failure
        """
        for handler in self.snapshot():
            try:
                if handler(reason):
                    return True
            except Exception:
                logger.error(
                    "Unhandled failure handler raised",
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    exc_info=True,
                )
        return False

    def snapshot(self) -> list[UnhandledFailureHandler]:
        with self._lock:
            return list(self._handlers)

    def clear(self) -> None:
        """Remove every handler (process shutdown)."""
        with self._lock:
            self._handlers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __contains__(self, handler: object) -> bool:
        with self._lock:
            return handler in self._handlers
