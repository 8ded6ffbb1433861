# src/rowstream/core/logging.py
"""Structured logging configuration for rowstream.

structlog and stdlib records share one handler: ProcessorFormatter runs
stdlib records (httpx, dynaconf) through the same processor chain as the
engine's structlog events.

Logs never go to stdout. ``rowstream ingest`` writes rows there as JSON
lines, and a log line in between would corrupt the data stream.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

from rowstream.core.config import LoggingSettings

# Request-level chatter from the HTTP byte source's client
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")


def _render_chain(json_output: bool) -> list[Any]:
    if json_output:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    # ConsoleRenderer formats exceptions itself
    return [structlog.dev.ConsoleRenderer(colors=False)]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Safe to call repeatedly; each call replaces the root handler.

    Args:
        json_output: Render JSON objects instead of console lines.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        stream: Destination, stderr by default.
    """
    log_level = getattr(logging, level.upper())

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests and the CLI reconfigure after loggers were created
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=[ProcessorFormatter.remove_processors_meta, *_render_chain(json_output)],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))


def configure_from_settings(settings: LoggingSettings, *, json_output: bool = False, verbose: bool = False) -> None:
    """Apply the ``logging`` section of a settings file.

    Command-line flags win: ``json_output`` forces JSON, ``verbose`` forces DEBUG.
    """
    configure_logging(
        json_output=json_output or settings.json_output,
        level="DEBUG" if verbose else settings.level,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
