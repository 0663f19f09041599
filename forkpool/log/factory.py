"""
Factory functions for creating configured loggers.

Loggers are created directly rather than through logging.getLogger() so that
forkpool loggers never alter the global logger class.
"""

import logging
import sys
from typing import Any, TextIO

from .config import LogConfig
from .formatter import LogFormatter
from .logger import Logger


def create_lg(
    name: str,
    config: LogConfig | None = None,
    stream: TextIO | None = None,
    extra: dict[str, Any] | None = None,
) -> Logger:
    """
    Create a logger writing formatted records to a stream.

    Args:
        name: Logger name
        config: Logger configuration (defaults to info level with colors)
        stream: Output stream (defaults to sys.stderr)
        extra: Fields attached to every record

    Returns:
        Logger: Configured logger instance

    Example:
        >>> lg = create_lg("forkpool", LogConfig.from_params("debug"))
        >>> lg.info("pool ready", extra={"max": 4})
    """
    config = config or LogConfig()
    lg = Logger(name, config, extra=extra)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(LogFormatter(config))
    lg.addHandler(handler)
    lg.propagate = False
    return lg


def derive_lg(lg: Logger, tag: str, extra: dict[str, Any] | None = None) -> Logger:
    """
    Derive a child logger that shares the parent's handlers.

    The child is named "<parent>/<tag>", inherits the parent's config and
    extra fields, and adds its own.

    Example:
        >>> pool_lg = derive_lg(lg, "pool", extra={"max": 4})
    """
    merged = lg.extra
    if extra:
        merged.update(extra)
    child = Logger(f"{lg.name}/{tag}", lg.config, extra=merged)
    child.parent = lg
    child.propagate = True
    return child
