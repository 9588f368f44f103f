"""
Configured, logged entry point for fallback runs.

Resolves the chain from settings (requested or primary model followed by
the configured fallbacks) and layers structured logging and Prometheus
metrics on top of the silent FallbackOrchestrator.

Usage:
    result = await run_with_model_fallback(call_provider, provider="anthropic", model="claude-opus-4-5")
    print(result.result, result.target, len(result.attempts))
"""

import structlog

from resilience_layer.config import Settings, settings as default_settings
from resilience_layer.fallback.exceptions import FallbackExhausted
from resilience_layer.fallback.models import AttemptRecord, FallbackResult, ModelTarget
from resilience_layer.fallback.orchestrator import FallbackOrchestrator, UnitOfWork
from resilience_layer.monitoring.metrics import fallback_attempts_total, fallback_exhausted_total

logger = structlog.get_logger(__name__)


def resolve_fallback_chain(
    settings: Settings,
    provider: str | None = None,
    model: str | None = None,
) -> list[ModelTarget]:
    """
    Build the ordered fallback chain for one request.

    The requested target comes first (or PRIMARY_MODEL when no model is
    requested), followed by FALLBACK_MODELS. Duplicates are dropped,
    keeping the first occurrence.

    Args:
        settings: Application settings
        provider: Requested provider (optional)
        model: Requested model, or a "provider/model" reference

    Raises:
        ConfigurationError: If a model reference is malformed
    """
    if model and provider:
        primary = ModelTarget(provider=provider, model=model)
    elif model:
        primary = ModelTarget.parse(model, settings.DEFAULT_PROVIDER)
    else:
        primary = ModelTarget.parse(settings.PRIMARY_MODEL, provider or settings.DEFAULT_PROVIDER)

    chain = [primary]
    for ref in settings.FALLBACK_MODELS:
        target = ModelTarget.parse(ref, settings.DEFAULT_PROVIDER)
        if target not in chain:
            chain.append(target)
    return chain


async def run_with_model_fallback(
    run: UnitOfWork,
    settings: Settings | None = None,
    provider: str | None = None,
    model: str | None = None,
) -> FallbackResult:
    """
    Run a provider call with model fallback.

    Args:
        run: Unit of work called with each ModelTarget
        settings: Application settings (defaults to the global instance)
        provider: Requested provider (optional)
        model: Requested model (optional)

    Returns:
        FallbackResult from the first target that succeeded

    Raises:
        ConfigurationError: Chain could not be resolved
        FallbackExhausted: All targets failed with retryable errors
        Exception: Original error of a non-retryable failure, unchanged
    """
    settings = settings or default_settings
    chain = resolve_fallback_chain(settings, provider, model)
    orchestrator: FallbackOrchestrator = FallbackOrchestrator(max_depth=settings.MAX_CAUSE_DEPTH)

    logger.debug("Starting fallback run", chain=[str(target) for target in chain])

    try:
        result = await orchestrator.run(chain, run)
    except FallbackExhausted as exc:
        _record_attempts(exc.attempts, settings)
        if settings.PROMETHEUS_ENABLED:
            fallback_exhausted_total.inc()
        logger.error(
            "All fallback targets failed",
            chain_length=len(chain),
            attempts=len(exc.attempts),
            last_error_type=type(exc.last_error).__name__,
        )
        raise
    except Exception as exc:
        logger.warning(
            "Fallback run stopped by non-retryable error",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise

    _record_attempts(result.attempts, settings)
    if result.used_fallback:
        logger.info(
            "Fallback run succeeded on fallback target",
            target=str(result.target),
            failed_attempts=len(result.attempts),
        )
    return result


def _record_attempts(attempts: list[AttemptRecord], settings: Settings) -> None:
    for number, attempt in enumerate(attempts, start=1):
        logger.warning(
            f"Attempt {number} failed, advancing",
            target=str(attempt.target),
            reason=attempt.reason.value,
            message=attempt.message,
        )
        if settings.PROMETHEUS_ENABLED:
            fallback_attempts_total.labels(reason=attempt.reason.value).inc()
