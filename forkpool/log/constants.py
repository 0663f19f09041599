"""
Constants for the logging system.

Format strings, custom level numbers and ANSI color codes used by the
formatter and level resolution.
"""

import logging


class LogConstants:
    """Constants for the logging system."""

    DEFAULT_FORMAT: str = "[%(asctime)s] [%(levelname).1s] %(message)s"

    # Column at which extra fields start
    DEFAULT_RULE_WIDTH: int = 60
    MICRO_RULE_WIDTH: int = 64

    CUSTOM_LEVELS: dict[str, int] = {"TRACE": 5}

    # Level names accepted by resolve_level() and LogConfig
    LEVEL_NAMES: dict[str, int | bool] = {
        "trace": 5,
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
        "false": False,  # disables all logging
    }

    RESET: str = "\x1b[0m"

    LEVEL_COLORS: dict[int, str] = {
        5: "\x1b[38;5;244m",
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[35;1m",
    }

    # Color used for the pid/name metadata section
    META_COLOR: str = "\x1b[38;5;241m"
