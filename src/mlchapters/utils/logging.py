"""
structlog setup for chapter runs.

Events go to stderr so that rich tables printed on stdout stay clean
when output is piped. Every module logs through ``get_logger(__name__)``
with keyword events; ``log_context`` tags all events of one chapter.
"""

import logging
import sys
from typing import Any

import structlog

# Chatty at INFO; only their warnings reach a chapter log
QUIET_LIBRARIES = ("mlflow", "matplotlib", "urllib3", "alembic", "PIL")


def _processors(json_output: bool) -> list[structlog.types.Processor]:
    """Processor chain ending in a JSON or console renderer."""
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Emit one JSON object per event instead of console lines.
    """
    log_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    logging.basicConfig(format="%(name)s: %(message)s", stream=sys.stderr, level=log_level)
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    # Not cached: the CLI may reconfigure within one process
    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_context(**bindings: Any) -> structlog.contextvars.bound_contextvars:
    """
    Tag every event inside the block, e.g.
    ``with log_context(chapter="credit-c50"): ...``.
    """
    return structlog.contextvars.bound_contextvars(**bindings)
