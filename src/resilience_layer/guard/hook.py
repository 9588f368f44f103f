"""
Process shell around the unhandled failure policy.

Hooks the asyncio event loop exception handler (the notification asyncio
emits for task failures nobody awaited), applies ``decide``, writes one
log line per decision, and exits the process on a terminate verdict.

Usage:
    registry = HandlerRegistry()
    guard = UnhandledRejectionGuard(registry, settings)
    guard.install(asyncio.get_running_loop())
    ...
    guard.uninstall()
    registry.clear()
"""

import asyncio
import logging
import os
from collections.abc import Callable
from typing import Any

import structlog

from resilience_layer.config import Settings, settings as default_settings
from resilience_layer.errors.formatting import format_error
from resilience_layer.guard.policy import HANDLED, Verdict, decide
from resilience_layer.guard.registry import HandlerRegistry
from resilience_layer.monitoring.metrics import unhandled_rejections_total

logger = structlog.get_logger(__name__)

LoopExceptionHandler = Callable[[asyncio.AbstractEventLoop, dict[str, Any]], object]


def terminate_process(exit_code: int) -> None:
    """Flush logging and exit immediately, from any thread or callback."""
    logging.shutdown()
    os._exit(exit_code)


class UnhandledRejectionGuard:
    """
    Applies the unhandled failure policy and performs its effects.

    Attributes:
        registry: Handlers consulted before the policy
        settings: Application settings (log tag, depth limit, exit switch)
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        settings: Settings | None = None,
        terminate: Callable[[int], None] = terminate_process,
    ):
        """
        Initialize the guard.

        Args:
            registry: Handler registry owned by the application
            settings: Application settings (defaults to the global instance)
            terminate: Called with the exit code on a terminate verdict
        """
        self.registry = registry
        self.settings = settings or default_settings
        self._terminate = terminate
        self._installed: dict[asyncio.AbstractEventLoop, LoopExceptionHandler | None] = {}

    def handle(self, reason: Any) -> Verdict:
        """
        Apply the policy to one unhandled failure.

        Returns:
            The verdict that was acted upon
        """
        verdict = decide(reason, self.registry, self.settings.MAX_CAUSE_DEPTH)
        classification = verdict.classification.value if verdict.classification else "handled"

        if self.settings.PROMETHEUS_ENABLED:
            unhandled_rejections_total.labels(
                classification=classification, action=verdict.action.value
            ).inc()

        if verdict is HANDLED:
            return verdict

        event = f"{self.settings.LOG_TAG} {verdict.summary}"
        fields = {
            "classification": classification,
            "action": verdict.action.value,
            "error": format_error(reason),
        }
        if verdict.log_level >= logging.ERROR:
            logger.error(event, **fields)
        else:
            logger.warning(event, **fields)

        if verdict.should_terminate:
            if self.settings.EXIT_ON_UNHANDLED:
                self._terminate(verdict.exit_code)
            else:
                logger.warning(
                    f"{self.settings.LOG_TAG} Exit suppressed by configuration",
                    exit_code=verdict.exit_code,
                )

        return verdict

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """
        Subscribe to the loop's unhandled exception notifications.

        Installing twice on the same loop is a no-op.

        Raises:
            RuntimeError: If no loop is given and none is running
        """
        loop = loop or asyncio.get_running_loop()
        if loop in self._installed:
            return
        self._installed[loop] = loop.get_exception_handler()
        loop.set_exception_handler(self._on_loop_exception)
        logger.debug("Unhandled failure guard installed", loop=repr(loop))

    def uninstall(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Restore the handler that was active before ``install``."""
        loops = [loop] if loop is not None else list(self._installed)
        for target in loops:
            if target not in self._installed:
                continue
            target.set_exception_handler(self._installed.pop(target))

    def is_installed(self, loop: asyncio.AbstractEventLoop) -> bool:
        return loop in self._installed

    def _on_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        exception = context.get("exception")
        if exception is None:
            # Not a failure (e.g., unclosed transport warning)
            previous = self._installed.get(loop)
            if previous is not None:
                previous(loop, context)
            else:
                loop.default_exception_handler(context)
            return
        self.handle(exception)
