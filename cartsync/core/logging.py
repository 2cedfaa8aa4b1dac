"""
Structured logging configuration for CartSync.

Log lines always go to stderr so tables printed on stdout stay clean. The
correlation id lives in structlog's context variables, so every task spawned
after it is set (search debounce tasks, concurrent page-load fetches) carries it.
"""

import logging
import sys
import uuid
from typing import Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

CORRELATION_ID_KEY = "correlation_id"


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation ID to the current context, generating one if omitted."""
    correlation_id = correlation_id or str(uuid.uuid4())[:8]
    structlog.contextvars.bind_contextvars(**{CORRELATION_ID_KEY: correlation_id})
    return correlation_id


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)


def clear_correlation_id() -> None:
    structlog.contextvars.unbind_contextvars(CORRELATION_ID_KEY)


def setup_logging(debug: bool = False, rich_output: Optional[bool] = None) -> None:
    """
    Configure structured logging for the CLI.

    Args:
        debug: Enable debug level logging
        rich_output: Colourised console output; defaults to whether stderr is a
            terminal, with JSON lines otherwise
    """
    level = logging.DEBUG if debug else logging.INFO
    if rich_output is None:
        rich_output = sys.stderr.isatty()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.dev.set_exc_info,
    ]

    if rich_output:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True, exception_formatter=structlog.dev.rich_traceback
            )
        )
        # httpx and other stdlib loggers
        logging.basicConfig(
            level=level,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )
    else:
        processors.extend(
            [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        )
        logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


performance_logger = structlog.get_logger("performance")
