"""
Process-creation and reap primitives.

Thin wrappers around os.fork() and os.waitpid() that turn the OS's implicit
error reporting into explicit values: fork failure raises
ProcessCreationError, and "nothing to reap" is a None result rather than an
exception. ProcessPoolManager talks to the OS only through this interface, so
tests can substitute a fake implementation.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import NoReturn, Protocol

from .exceptions import ProcessCreationError


@dataclass(frozen=True)
class ForkResult:
    """
    Result of a fork call.

    Attributes:
        pid: 0 in the new child process, the child's pid in the parent
    """

    pid: int

    @property
    def in_child(self) -> bool:
        return self.pid == 0


@dataclass(frozen=True)
class ReapResult:
    """
    A reaped child process.

    Attributes:
        pid: Process id of the exited child
        status: Raw wait status as returned by os.waitpid()
    """

    pid: int
    status: int = 0

    @property
    def exit_code(self) -> int:
        """Exit code, or the negated signal number if the child was killed."""
        return os.waitstatus_to_exitcode(self.status)


class ProcessOps(Protocol):
    """Interface to the OS process primitives used by the pool."""

    def fork(self) -> ForkResult: ...

    def reap(self, block: bool) -> ReapResult | None: ...

    def exit(self, code: int) -> NoReturn: ...


class OSProcessOps:
    """ProcessOps implementation backed by the real operating system."""

    def fork(self) -> ForkResult:
        """
        Create a copy of the current process.

        Returns:
            ForkResult whose pid tells each resulting process its role

        Raises:
            ProcessCreationError: If the OS refuses to create the process
        """
        try:
            pid = os.fork()
        except OSError as e:
            raise ProcessCreationError(
                f"Cannot fork: {e.strerror or e}", errno=e.errno
            ) from e
        return ForkResult(pid)

    def reap(self, block: bool) -> ReapResult | None:
        """
        Collect any exited child of this process.

        Args:
            block: Wait until a child exits, or poll and return immediately

        Returns:
            ReapResult for the exited child, or None if nothing is ready
            (polling) or this process has no children at all
        """
        try:
            pid, status = os.waitpid(-1, 0 if block else os.WNOHANG)
        except ChildProcessError:
            return None
        if pid == 0:
            return None
        return ReapResult(pid, status)

    def exit(self, code: int) -> NoReturn:
        """
        Terminate the current process immediately.

        Buffered stdio and logging output is flushed first. Interpreter
        cleanup (atexit handlers, finally blocks of the parent's stack) is
        skipped since that state belongs to the parent.
        """
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError, AttributeError):
                pass
        for handler in logging.root.handlers:
            handler.flush()
        os._exit(code)
