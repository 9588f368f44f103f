"""
Unit tests for UnhandledRejectionGuard.

The terminate callback is replaced with a MagicMock so exit decisions are
observable without stopping the test process.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from resilience_layer.errors.exceptions import ConfigurationError, ProviderRateLimitError
from resilience_layer.guard.hook import UnhandledRejectionGuard, terminate_process
from resilience_layer.guard.policy import HANDLED, Action


@pytest.fixture
def terminate():
    return MagicMock()


@pytest.fixture
def guard(registry, test_settings, terminate):
    return UnhandledRejectionGuard(registry, test_settings, terminate=terminate)


def test_handle_abort_logs_warning_and_continues(guard, terminate):
    error = asyncio.CancelledError()

    with capture_logs() as logs:
        verdict = guard.handle(error)

    assert verdict.action is Action.CONTINUE
    terminate.assert_not_called()
    assert len(logs) == 1
    assert logs[0]["log_level"] == "warning"
    assert logs[0]["event"].startswith("[gateway] ")
    assert logs[0]["classification"] == "abort"


@pytest.mark.parametrize(
    "reason",
    [ConnectionResetError(), ProviderRateLimitError(), TypeError("fetch failed")],
)
def test_handle_recoverable_failures_continue(guard, terminate, reason):
    with capture_logs() as logs:
        verdict = guard.handle(reason)

    assert verdict.action is Action.CONTINUE
    terminate.assert_not_called()
    assert logs[0]["log_level"] == "warning"
    assert logs[0]["action"] == "continue"


def test_handle_config_error_terminates(guard, terminate):
    with capture_logs() as logs:
        verdict = guard.handle(ConfigurationError("PRIMARY_MODEL is empty"))

    assert verdict.exit_code == 1
    terminate.assert_called_once_with(1)
    assert logs[0]["log_level"] == "error"
    assert "requires fix" in logs[0]["event"]
    assert "PRIMARY_MODEL is empty" in logs[0]["error"]


def test_handle_unclassified_terminates(guard, terminate):
    with capture_logs() as logs:
        guard.handle(Exception("Something went wrong"))

    terminate.assert_called_once_with(1)
    assert logs[0]["classification"] == "unclassified"
    assert logs[0]["action"] == "terminate"


def test_handle_fatal_terminates(guard, terminate):
    error = Exception("worker died")
    error.code = "ERR_WORKER_UNCAUGHT_EXCEPTION"

    with capture_logs():
        guard.handle(error)

    terminate.assert_called_once_with(1)


def test_handle_claimed_by_handler_is_silent(guard, registry, terminate):
    registry.register(lambda reason: True)

    with capture_logs() as logs:
        verdict = guard.handle(Exception("Something went wrong"))

    assert verdict is HANDLED
    assert logs == []
    terminate.assert_not_called()


def test_handle_exit_suppressed_by_configuration(registry, test_settings, terminate):
    test_settings.EXIT_ON_UNHANDLED = False
    guard = UnhandledRejectionGuard(registry, test_settings, terminate=terminate)

    with capture_logs() as logs:
        verdict = guard.handle(Exception("Something went wrong"))

    assert verdict.should_terminate is True
    terminate.assert_not_called()
    assert logs[-1]["event"] == "[gateway] Exit suppressed by configuration"


def test_handle_records_metrics(registry, test_settings, terminate):
    test_settings.PROMETHEUS_ENABLED = True
    guard = UnhandledRejectionGuard(registry, test_settings, terminate=terminate)
    labels = {"classification": "rate_limit", "action": "continue"}
    before = REGISTRY.get_sample_value("unhandled_rejections_total", labels) or 0.0

    with capture_logs():
        guard.handle(ProviderRateLimitError())

    assert REGISTRY.get_sample_value("unhandled_rejections_total", labels) == before + 1


@pytest.mark.asyncio
async def test_install_routes_loop_exceptions(guard, terminate):
    loop = asyncio.get_running_loop()
    guard.install(loop)
    try:
        with capture_logs() as logs:
            loop.call_exception_handler(
                {"message": "Task exception was never retrieved", "exception": ProviderRateLimitError()}
            )
    finally:
        guard.uninstall(loop)

    assert logs[0]["classification"] == "rate_limit"
    terminate.assert_not_called()


@pytest.mark.asyncio
async def test_install_is_idempotent(guard):
    loop = asyncio.get_running_loop()
    previous = loop.get_exception_handler()

    guard.install(loop)
    installed = loop.get_exception_handler()
    guard.install(loop)

    assert loop.get_exception_handler() is installed
    assert guard.is_installed(loop) is True

    guard.uninstall(loop)
    assert loop.get_exception_handler() is previous
    assert guard.is_installed(loop) is False


@pytest.mark.asyncio
async def test_context_without_exception_goes_to_previous_handler(guard):
    loop = asyncio.get_running_loop()
    previous = MagicMock()
    loop.set_exception_handler(previous)
    guard.install(loop)
    try:
        context = {"message": "Unclosed client session"}
        loop.call_exception_handler(context)
    finally:
        guard.uninstall(loop)
        loop.set_exception_handler(None)

    previous.assert_called_once_with(loop, context)


def test_terminate_process_flushes_logging_and_exits():
    with patch("resilience_layer.guard.hook.logging.shutdown") as shutdown, patch(
        "resilience_layer.guard.hook.os._exit"
    ) as exit_:
        terminate_process(1)

    shutdown.assert_called_once()
    exit_.assert_called_once_with(1)
