"""
Configuration for the logging system.

LogConfig is immutable so a logger's settings cannot drift after creation,
including across a fork where parent and child hold independent copies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .constants import LogConstants
from .exceptions import InvalidLogLevelError


def resolve_level(level: str | int | bool) -> int | bool:
    """
    Resolve log level from string, numeric value, or boolean.

    Args:
        level: Level name ("info", "trace", ...), numeric value or numeric
            string, or False/"false" to disable logging. True maps to INFO.

    Returns:
        Numeric log level, or False when logging is disabled

    Raises:
        InvalidLogLevelError: If the level name is unknown
    """
    if isinstance(level, bool):
        return logging.INFO if level else False
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().lower()
        if name.isnumeric():
            return int(name)
        if name in LogConstants.LEVEL_NAMES:
            return LogConstants.LEVEL_NAMES[name]
    raise InvalidLogLevelError(level)


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable logger configuration.

    Attributes:
        level: Numeric level, or False to disable logging
        micros: Show microsecond precision in timestamps
        colors: Emit ANSI colors
    """

    level: int | bool = logging.INFO
    micros: bool = False
    colors: bool = True

    @classmethod
    def from_params(
        cls, level: str | int | bool = "info", micros: bool = False, colors: bool = True
    ) -> LogConfig:
        """Create LogConfig from individual parameters, resolving the level."""
        return cls(level=resolve_level(level), micros=micros, colors=colors)

    @classmethod
    def from_config(cls, config: dict[str, Any], section: str = "logging") -> LogConfig:
        """
        Create LogConfig from a configuration dictionary.

        Args:
            config: Configuration dictionary (e.g., from load_config())
            section: Dotted path of the logging section (default: "logging")

        Example:
            config = load_config("etc/forkpool.yaml")
            log_config = LogConfig.from_config(config)
        """
        current: Any = config
        for part in section.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                current = {}
                break
        if not isinstance(current, dict):
            current = {}

        colors = current.get("colors", True)
        if isinstance(colors, dict):
            colors = colors.get("enabled", True)

        return cls.from_params(
            level=current.get("level", "info"),
            micros=bool(current.get("micros", current.get("microseconds", False))),
            colors=bool(colors),
        )
