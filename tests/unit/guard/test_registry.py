"""
Unit tests for HandlerRegistry.

Tests registration order, short-circuiting, handler failures, and
mutation while a failure is being processed.
"""

import threading

from structlog.testing import capture_logs

from resilience_layer.guard.registry import HandlerRegistry


def test_empty_registry_does_not_handle(registry):
    assert registry.is_handled(Exception("boom")) is False


def test_first_true_handler_short_circuits(registry):
    calls = []

    def first(reason):
        calls.append("first")
        return True

    def second(reason):
        calls.append("second")
        return True

    registry.register(first)
    registry.register(second)

    assert registry.is_handled("reason") is True
    assert calls == ["first"]


def test_handlers_run_in_insertion_order(registry):
    calls = []
    for name in ("a", "b", "c"):
        registry.register(lambda reason, name=name: calls.append(name) and False)

    assert registry.is_handled("reason") is False
    assert calls == ["a", "b", "c"]


def test_handler_receives_reason(registry):
    received = []
    registry.register(lambda reason: received.append(reason) or False)

    error = ValueError("x")
    registry.is_handled(error)

    assert received == [error]


def test_throwing_handler_is_logged_and_skipped(registry):
    """Test a raising handler does not block the next handler."""

    def broken(reason):
        raise RuntimeError("handler bug")

    registry.register(broken)
    registry.register(lambda reason: True)

    with capture_logs() as logs:
        assert registry.is_handled(Exception("boom")) is True

    assert len(logs) == 1
    assert logs[0]["log_level"] == "error"
    assert logs[0]["event"] == "Unhandled failure handler raised"
    assert "broken" in logs[0]["handler"]


def test_throwing_handler_alone_means_not_handled(registry):
    def broken(reason):
        raise RuntimeError("handler bug")

    registry.register(broken)

    with capture_logs():
        assert registry.is_handled(Exception("boom")) is False


def test_unregister_removes_handler(registry):
    unregister = registry.register(lambda reason: True)
    assert registry.is_handled("x") is True

    unregister()

    assert registry.is_handled("x") is False
    assert len(registry) == 0


def test_unregister_twice_is_safe(registry):
    unregister = registry.register(lambda reason: True)
    unregister()
    unregister()
    assert len(registry) == 0


def test_registering_same_handler_twice_keeps_one_entry(registry):
    def handler(reason):
        return False

    registry.register(handler)
    registry.register(handler)

    assert len(registry) == 1
    assert handler in registry


def test_unregister_from_inside_handler(registry):
    """Test a handler can remove itself while it is running."""
    calls = []
    unregister_holder = {}

    def one_shot(reason):
        calls.append("one_shot")
        unregister_holder["fn"]()
        return False

    unregister_holder["fn"] = registry.register(one_shot)
    registry.register(lambda reason: calls.append("next") or False)

    registry.is_handled("first")
    registry.is_handled("second")

    assert calls == ["one_shot", "next", "next"]


def test_register_from_inside_handler_applies_to_next_failure(registry):
    calls = []

    def late(reason):
        calls.append("late")
        return True

    def registrar(reason):
        calls.append("registrar")
        registry.register(late)
        return False

    registry.register(registrar)

    assert registry.is_handled("first") is False
    assert registry.is_handled("second") is True
    assert calls == ["registrar", "registrar", "late"]


def test_concurrent_registration(registry):
    """Test registration from many threads loses no handlers."""

    def register_many():
        for _ in range(100):
            registry.register(lambda reason: False)

    threads = [threading.Thread(target=register_many) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 400


def test_clear_drains_registry():
    registry = HandlerRegistry()
    registry.register(lambda reason: True)
    registry.register(lambda reason: True)

    registry.clear()

    assert len(registry) == 0
    assert registry.is_handled("x") is False
