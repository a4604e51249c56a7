"""Structured logging for the API, the CLI and the ranking services."""

import logging
import sys
from typing import Any, List, Optional, TextIO

import structlog
from structlog.types import Processor

FILE_HANDLER_NAME = "meme_market_file"

CALLSITE = structlog.processors.CallsiteParameterAdder(
    {
        structlog.processors.CallsiteParameter.MODULE,
        structlog.processors.CallsiteParameter.FUNC_NAME,
        structlog.processors.CallsiteParameter.LINENO,
    }
)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
    **context: Any,
) -> None:
    """
    Route structlog events through the standard library root logger.

    Args:
        level: Log level
        json_format: Render events as JSON lines instead of console output
        log_file: Optional file receiving the same lines
        stream: Console stream, stdout when None
        **context: Key/values bound to every event (app name, environment)
    """
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CALLSITE,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(level.upper())
    logging.basicConfig(format="%(message)s", stream=stream or sys.stdout)

    for handler in [h for h in root.handlers if h.get_name() == FILE_HANDLER_NAME]:
        root.removeHandler(handler)
        handler.close()
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.set_name(FILE_HANDLER_NAME)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(file_handler)

    structlog.contextvars.clear_contextvars()
    if context:
        structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return the structured logger for a module (pass ``__name__``)."""
    return structlog.get_logger(name)
