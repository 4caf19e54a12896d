"""structlog setup shared by the CLI and tests."""

import logging
import sys

import structlog


def configure_logging(level: str = "WARNING", renderer: str = "console") -> None:
    """
    Route structlog through stdlib logging on stderr.

    Args:
        level: Log level name, e.g. "INFO"; unknown names fall back to WARNING
        renderer: "console" for human-readable lines, "json" for one JSON object per line
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if renderer == "json":
        final = structlog.processors.JSONRenderer()
    else:
        final = structlog.dev.ConsoleRenderer(colors=False)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )

    structlog.configure(
        processors=shared_processors + [final],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
