"""Structured logging configuration using structlog.

Guard decisions and fallback attempts are emitted through structlog and
rendered by a stdlib handler on stderr: JSON lines in production, console
output everywhere else. Level, environment and the app fields come from
``Settings``.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from resilience_layer.config import Settings, settings as default_settings

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def app_context(app_name: str, app_version: str) -> Processor:
    """Build a processor stamping every event with the application identity."""

    def add_app_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("app_version", app_version)
        return event_dict

    return add_app_context


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the root stdlib logger from settings.

    Args:
        settings: Application settings (defaults to the global instance).
            Uses LOG_LEVEL, ENVIRONMENT, APP_NAME and APP_VERSION.

    An unknown LOG_LEVEL falls back to INFO. Calling this again replaces
    the previous handler instead of adding a second one.
    """
    settings = settings or default_settings
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    is_production = settings.ENVIRONMENT.lower() == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        app_context(settings.APP_NAME, settings.APP_VERSION),
    ]

    renderer: Processor
    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        # ConsoleRenderer formats exc_info itself
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(log_level),
        environment=settings.ENVIRONMENT,
        renderer="json" if is_production else "console",
    )
