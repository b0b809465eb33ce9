"""Structured logging configuration using structlog.

JSON lines in production, coloured console output everywhere else. Every
event carries the service name and version so logs from several resolver
instances sharing one Redis health store can be told apart.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "tour-resolver"

_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "redis", "uvicorn.access")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service name to all log events."""
    event_dict.setdefault("app", SERVICE_NAME)
    return event_dict


def _version_processor(version: str) -> Processor:
    def add_version(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("version", version)
        return event_dict

    return add_version


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    version: str | None = None,
) -> None:
    """Configure structlog on top of the standard library logging module.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: "production" selects the JSON renderer
        version: Service version stamped on every event
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)
    is_production = environment.lower() == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]
    if version:
        shared_processors.append(_version_processor(version))

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level_int)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
