"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

from mesh_bridge.logging.sinks import LogLevel, LogSinks


def setup_logging(level: str = "info", fmt: str = "json", log_file: str = "") -> LogSinks:
    """Configure structured logging for the bridge.

    Args:
        level: Log level (error, warn, info, debug).
        fmt: Output format - "json" for production, "console" for development.
        log_file: Optional file path for log output. Empty = stdout only.

    Returns:
        The attached handlers, so the level can be changed at runtime.
    """
    try:
        log_level = LogLevel.parse(level)
    except ValueError:
        log_level = LogLevel.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Records from plain stdlib loggers pass through the same chain, so
    # bound context (command, topic) shows up on every line.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)

    # Suppress noisy libraries
    logging.getLogger("aiomqtt").setLevel(logging.WARNING)

    return LogSinks(handlers, level=log_level, logger=root_logger)
