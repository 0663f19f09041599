"""
Exception hierarchy for the process pool.

Every error raised by forkpool derives from PoolError, so callers can catch
all pool failures with a single except clause.
"""

from typing import Any


class PoolError(Exception):
    """
    Base exception for all forkpool errors.

    Example:
        try:
            pm.spawn()
        except PoolError as e:
            lg.error("spawn failed", extra={"error": e})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(PoolError):
    """
    Configuration-related errors.

    Examples:
        - Negative or non-integer concurrency bound
        - Unreadable or malformed YAML config file
        - Config section that is not a mapping
    """

    pass


class InvalidStateError(PoolError):
    """
    Raised when a pool operation is not allowed in the current process.

    A process created by spawn() must not spawn further children through the
    same manager instance. Create a new ProcessPoolManager in the child to
    manage a nested set of processes.
    """

    pass


class ProcessCreationError(PoolError):
    """
    Raised when the OS refuses to create a new process.

    Not recoverable at the pool level: the spawn call is aborted and the
    pool's slot accounting is left as it was before the call.
    """

    pass
