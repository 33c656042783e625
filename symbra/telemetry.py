"""
Structured logging for SYMBRA.

The library only emits events through ``structlog.get_logger()``; it never
configures logging on import. Applications that want the events routed
through the standard logging module call configure_logging() once:

    from symbra.telemetry import configure_logging

    configure_logging(level="DEBUG")          # coloured console output
    configure_logging(level="INFO", fmt="json")
"""

import logging
import sys
from typing import Any, List

import structlog

FORMATS = ("console", "json")


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """
    Configure structlog and the root logger.

    Args:
        level: Standard logging level name ("DEBUG", "INFO", ...)
        fmt: "console" for human readable output, "json" for one JSON
            object per line
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown log format: {fmt}. Valid options: {', '.join(FORMATS)}")
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: Any
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)
