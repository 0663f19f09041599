"""
Log formatter for the logging system.

Renders records as:

    [2026-01-01 12:00:00,123] [I] message        [key:value] [4242] [forkpool]

Extra fields are sorted by key. The process id is always shown, which makes
interleaved parent and child output readable.
"""

import logging
from typing import Any

from .config import LogConfig
from .constants import LogConstants
from .logger import EXTRA_ATTR


def _format_value(value: Any) -> str:
    """Format a single extra field value."""
    if isinstance(value, BaseException):
        return value.__class__.__name__
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value)
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


class LogFormatter(logging.Formatter):
    """
    Formatter with column-aligned extra fields and optional ANSI colors.

    Args:
        config: Logger configuration (controls colors and microseconds)
    """

    def __init__(self, config: LogConfig | None = None) -> None:
        super().__init__(LogConstants.DEFAULT_FORMAT)
        self._config = config or LogConfig()

    @property
    def config(self) -> LogConfig:
        return self._config

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        text = super().formatTime(record, datefmt)
        if self._config.micros:
            # Replace millisecond suffix with microseconds
            text = text.rsplit(",", 1)[0] + f",{int(record.created % 1 * 1_000_000):06d}"
        return text

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        record.asctime = self.formatTime(record, self.datefmt)
        head = LogConstants.DEFAULT_FORMAT % record.__dict__

        rule = (
            LogConstants.MICRO_RULE_WIDTH
            if self._config.micros
            else LogConstants.DEFAULT_RULE_WIDTH
        )
        pad = " " * max(1, rule - len(head))
        fields = self._format_fields(record)
        meta = f"[{record.process}] [{record.name}]"

        if self._config.colors:
            col = LogConstants.LEVEL_COLORS.get(record.levelno, "")
            line = (
                col + head + LogConstants.RESET + pad
                + (col + fields + LogConstants.RESET + " " if fields else "")
                + LogConstants.META_COLOR + meta + LogConstants.RESET
            )
        else:
            line = head + pad + (fields + " " if fields else "") + meta

        if record.exc_info:
            if not record.exc_text:
                record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line += "\n" + record.exc_text
        return line

    def _format_fields(self, record: logging.LogRecord) -> str:
        extra = getattr(record, EXTRA_ATTR, None)
        if not extra:
            return ""
        return " ".join(f"[{key}:{_format_value(extra[key])}]" for key in sorted(extra))
