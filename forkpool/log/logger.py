"""
Logger class for the logging system.

Extends the standard Python logger with a TRACE level and structured extra
fields that are carried on the record for the formatter to render.
"""

import logging
from typing import Any

from .config import LogConfig
from .constants import LogConstants

# Record attribute holding the merged extra fields
EXTRA_ATTR = "__forkpool__extra"


class Logger(logging.Logger):
    """
    Enhanced logger with structured extra fields and a trace method.

    Fields passed at construction are attached to every record; fields passed
    per call via extra={...} are merged on top of them.
    """

    def __init__(
        self,
        name: str,
        config: LogConfig | None = None,
        extra: dict[str, Any] | None = None,
    ):
        """
        Initialize the logger.

        Args:
            name: Logger name
            config: Logger configuration (defaults to info level)
            extra: Pre-populated extra fields to include in all log records
        """
        if config is None:
            config = LogConfig()

        if config.level is False:
            super().__init__(name, logging.CRITICAL + 1)
            self._logging_disabled = True
        else:
            super().__init__(name, config.level)
            self._logging_disabled = False

        self._config = config
        self._extra = dict(extra or {})

    @property
    def config(self) -> LogConfig:
        """Get logger configuration."""
        return self._config

    @property
    def extra(self) -> dict[str, Any]:
        """Fields attached to every record emitted by this logger."""
        return dict(self._extra)

    def isEnabledFor(self, level: int) -> bool:
        if self._logging_disabled:
            return False
        return super().isEnabledFor(level)

    def makeRecord(
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: dict[str, Any] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        """Create log record, attaching the merged extra fields."""
        merged = dict(self._extra)
        if extra:
            merged.update(extra)
        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func, merged, sinfo
        )
        setattr(record, EXTRA_ATTR, merged)
        return record

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """
        Log a TRACE level message.

        Args:
            msg: Log message
            *args: Message format arguments
            **kwargs: Additional keyword arguments including 'extra' for structured data
        """
        level = LogConstants.CUSTOM_LEVELS["TRACE"]
        if self.isEnabledFor(level):
            self._log(level, msg, args, **kwargs)

    def flush(self) -> None:
        """Flush all handlers attached to this logger and its parents."""
        lg: logging.Logger | None = self
        while lg is not None:
            for handler in lg.handlers:
                handler.flush()
            lg = lg.parent if lg.propagate else None
