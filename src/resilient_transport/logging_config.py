"""Structured logging configuration using structlog.

Provides JSON output for production (parseable by ELK, Loki, CloudWatch)
and pretty console output for development.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

from resilient_transport.config import Settings


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application context to all log events."""
    event_dict["app"] = "resilient-transport"
    return event_dict


DUMP_FIELDS = ("request", "response")


def truncate_dumps(max_chars: int) -> structlog.types.Processor:
    """Build a processor shortening request/response dumps attached to retry events."""

    def processor(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        for key in DUMP_FIELDS:
            value = event_dict.get(key)
            if isinstance(value, str) and len(value) > max_chars:
                event_dict[key] = value[:max_chars] + f"... [{len(value) - max_chars} chars truncated]"
        return event_dict

    return processor


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    dump_max_chars: int = 4096,
) -> None:
    """Configure structlog for structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Environment name (development, production)
        dump_max_chars: Longest request/response dump kept in a log event

    In production mode:
        - JSON output for machine parsing
        - ISO timestamps
        - Exception info included

    In development mode:
        - Pretty colored console output
        - Request/response dumps attached to retry warnings stay readable
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        truncate_dumps(dump_max_chars),
    ]

    is_production = environment.lower() == "production"

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        shared_processors.append(structlog.processors.ExceptionPrettyPrinter())
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
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
    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    # The wrapped transports log every connection; keep them quiet
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from environment settings (LOG_LEVEL, ENVIRONMENT, RETRY_DUMP_MAX_CHARS)."""
    configure_logging(
        log_level=settings.LOG_LEVEL,
        environment=settings.ENVIRONMENT,
        dump_max_chars=settings.RETRY_DUMP_MAX_CHARS,
    )
