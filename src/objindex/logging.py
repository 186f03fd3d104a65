"""Structured logging configuration using structlog."""

import logging
import sys

import structlog


def configure_logging(debug: bool = False, json_output: bool = True) -> None:
    """Configure structlog for indexing and search events.

    Hosts that configure structlog themselves can skip this; objindex
    only ever calls ``structlog.get_logger()``.

    Args:
        debug: Enable debug-level logging (field definitions, searches).
        json_output: Render JSON lines; otherwise use the console renderer.
    """
    level = logging.DEBUG if debug else logging.INFO
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", level=level, stream=sys.stderr)
