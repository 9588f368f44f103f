"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit tests.
"""

import pytest

from resilience_layer.config import Settings
from resilience_layer.fallback.models import ModelTarget
from resilience_layer.guard.registry import HandlerRegistry


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.FALLBACK_MODELS = ["openai/gpt-4o"]
    """
    return Settings(
        # === Application ===
        APP_NAME="Gateway Resilience Layer (Test)",
        ENVIRONMENT="development",
        LOG_LEVEL="DEBUG",
        LOG_TAG="[gateway]",

        # === Fallback Chain ===
        DEFAULT_PROVIDER="anthropic",
        PRIMARY_MODEL="anthropic/claude-opus-4-5",
        FALLBACK_MODELS=[
            "openrouter/anthropic/claude-sonnet-4",
            "ollama/qwen3:32b",
        ],

        # === Classifier / Guard ===
        MAX_CAUSE_DEPTH=10,
        EXIT_ON_UNHANDLED=True,

        # === Monitoring ===
        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def registry():
    """Fresh handler registry, drained after the test."""
    registry = HandlerRegistry()
    yield registry
    registry.clear()


@pytest.fixture
def model_chain() -> list[ModelTarget]:
    """Three-target chain: primary followed by two fallbacks."""
    return [
        ModelTarget(provider="anthropic", model="claude-opus-4-5"),
        ModelTarget(provider="openrouter", model="anthropic/claude-sonnet-4"),
        ModelTarget(provider="ollama", model="qwen3:32b"),
    ]
