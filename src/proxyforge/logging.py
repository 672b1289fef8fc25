"""Structured logging for proxyforge.

Proxy synthesis logs through structlog on top of stdlib loggers under the
``proxyforge`` namespace. Applications either bring their own logging setup
or call ``configure_logging``; until then stdlib levels keep debug events
quiet.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING
from typing import Any

import structlog

if TYPE_CHECKING:
    from proxyforge.config import ProxyForgeSettings

_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOGGER_NAMESPACE: str = "proxyforge"


def configure_logging(
    *,
    settings: ProxyForgeSettings | None = None,
    json_format: bool = False,
    level: str = "INFO",
    stream: Any = None,
) -> None:
    """Configure structlog on top of stdlib logging.

    :param settings: Settings providing ``log_level`` and ``log_format``.
    :param json_format: Use JSON rendering when no settings are given.
    :param level: Log level when no settings are given.
    :param stream: Destination stream, ``sys.stderr`` by default.
    """
    if settings is not None:
        level = settings.log_level
        json_format = settings.log_format == "json"

    default_level = _LEVEL_MAP.get(level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Don't cache - allows reconfiguration and respects level changes
        cache_logger_on_first_use=False,
    )

    renderer: structlog.types.Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False, pad_event_to=0)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    handler.setLevel(default_level)

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(default_level)
    package_logger.propagate = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger backed by the stdlib logger ``name``.

    Events pass through stdlib levels and handlers, so nothing below WARNING
    is emitted until the application configures logging.

    :param name: Dotted logger name, ``proxyforge`` by default.
    :returns: Lazily configured bound logger.
    """
    return structlog.wrap_logger(  # type: ignore[no-any-return]
        logging.getLogger(name or LOGGER_NAMESPACE),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
