"""
Unit tests for structlog configuration.
"""

import json
import logging
import sys

import pytest
import structlog

from resilience_layer.logging_config import configure_logging


@pytest.fixture
def restore_logging():
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield root_logger
    structlog.reset_defaults()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


def last_json_line(err: str) -> dict:
    return json.loads(err.strip().splitlines()[-1])


def test_configure_logging_development_writes_to_stderr(restore_logging, test_settings):
    test_settings.LOG_LEVEL = "WARNING"

    configure_logging(test_settings)

    assert len(restore_logging.handlers) == 1
    assert restore_logging.handlers[0].stream is sys.stderr
    assert restore_logging.level == logging.WARNING


def test_configure_logging_development_renders_exceptions(restore_logging, test_settings, capsys):
    """Test the console renderer prints the traceback of a logged exception."""
    configure_logging(test_settings)

    try:
        raise ValueError("provider payload rejected")
    except ValueError:
        structlog.get_logger("tests.logging").error("Attempt failed", exc_info=True)

    err = capsys.readouterr().err
    assert "Attempt failed" in err
    assert "ValueError: provider payload rejected" in err


def test_configure_logging_production_renders_json(restore_logging, test_settings, capsys):
    test_settings.ENVIRONMENT = "production"

    configure_logging(test_settings)
    structlog.get_logger("tests.logging").warning("Guard decision", classification="rate_limit")

    payload = last_json_line(capsys.readouterr().err)
    assert payload["event"] == "Guard decision"
    assert payload["classification"] == "rate_limit"
    assert payload["app"] == "Gateway Resilience Layer (Test)"
    assert payload["app_version"] == test_settings.APP_VERSION
    assert payload["level"] == "warning"


def test_configure_logging_stdlib_records_get_app_context(restore_logging, test_settings, capsys):
    test_settings.ENVIRONMENT = "production"

    configure_logging(test_settings)
    logging.getLogger("gateway.provider").warning("plain stdlib record")

    payload = last_json_line(capsys.readouterr().err)
    assert payload["event"] == "plain stdlib record"
    assert payload["app"] == "Gateway Resilience Layer (Test)"


def test_configure_logging_is_repeatable(restore_logging, test_settings):
    configure_logging(test_settings)
    configure_logging(test_settings)

    assert len(restore_logging.handlers) == 1


def test_configure_logging_unknown_level_defaults_to_info(restore_logging, test_settings):
    test_settings.LOG_LEVEL = "verbose"

    configure_logging(test_settings)

    assert restore_logging.level == logging.INFO
