"""
Logging for forkpool.

Extends Python's standard logging with:
- A custom TRACE level below DEBUG
- Structured extra fields rendered as [key:value]
- Process id in every line, so parent and child output can be told apart
- Immutable LogConfig built from parameters or a config dict section

Log Level Control:
- Use standard levels: debug, info, warning, error, critical
- Use the custom level: trace
- Disable logging completely: False or "false"
"""

import logging

from .config import LogConfig, resolve_level
from .constants import LogConstants
from .exceptions import InvalidLogLevelError
from .factory import create_lg, derive_lg
from .formatter import LogFormatter
from .logger import Logger

logging.addLevelName(LogConstants.CUSTOM_LEVELS["TRACE"], "TRACE")

__all__ = [
    "Logger",
    "LogConfig",
    "LogConstants",
    "LogFormatter",
    "InvalidLogLevelError",
    "resolve_level",
    "create_lg",
    "derive_lg",
]
