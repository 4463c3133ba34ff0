"""structlog setup for pg-meta.

Everything is logged to stderr: stdout carries catalog output that is
usually piped into other tools.
"""

import logging
import sys
from typing import Any

import structlog


class _StderrLoggerFactory:
    """Create loggers bound to whatever sys.stderr is right now.

    CliRunner swaps and closes stderr between invocations, so the stream
    cannot be captured once when structlog is configured.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog.

    Only warnings and errors are shown unless ``verbose`` is set, in which
    case connection and statement events are logged at debug level.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_StderrLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, bound to ``logger=name`` when given.

    Call it inside functions, after setup_logging().
    """
    logger = structlog.get_logger()
    return logger.bind(logger=name) if name else logger
