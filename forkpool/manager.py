"""
Bounded process pool built on fork().

ProcessPoolManager lets a caller fork up to N concurrent children for
independent units of work. Once N children are live, spawn() blocks and reaps
exited children until a slot is free. Finish handlers report each reaped
child exactly once, in exit order rather than spawn order.

Typical use:

    pm = ProcessPoolManager(4)
    for item in items:
        if pm.spawn():
            continue  # parent: go on dispatching

        process(item)  # child
        pm.finish_current()
    pm.wait_all()

With max_concurrency=0 no process is ever forked: spawn() returns a
ChildMarker in the calling process and finish_current() returns normally,
so the same loop runs serially for debugging.
"""

from __future__ import annotations

import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Any, NoReturn

from .config import PoolConfig
from .exceptions import InvalidStateError
from .hooks import WILDCARD, EventHandler, FinishHandler, PoolHooks
from .log import Logger
from .process import OSProcessOps, ProcessOps, ReapResult


@dataclass(frozen=True)
class ParentHandle:
    """
    spawn() result in the parent: a child was forked.

    Truthy, so "if pm.spawn(): continue" skips the child's work in the parent.
    """

    pid: int

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class ChildMarker:
    """spawn() result in the process that should do the work. Falsy."""

    def __bool__(self) -> bool:
        return False


SpawnResult = ParentHandle | ChildMarker


class ProcessPoolManager:
    """
    Fork-based worker pool with a fixed concurrency bound.

    All state is private to the instance and, after a fork, each process
    holds its own copy: the parent tracks live children, the child only knows
    that it is a child. No locking is involved.

    Args:
        max_concurrency: Maximum number of live children (0 = no-fork mode)
        lg: Logger for pool events (optional)
        ops: Process primitives (defaults to the real OS)

    Raises:
        ConfigError: If max_concurrency is negative or not an integer
    """

    def __init__(
        self,
        max_concurrency: int,
        lg: Logger | None = None,
        ops: ProcessOps | None = None,
    ) -> None:
        self._config = PoolConfig(max_concurrency)
        self._lg = lg
        self._ops: ProcessOps = ops if ops is not None else OSProcessOps()
        self._hooks = PoolHooks()
        self._children: set[int] = set()
        self._exit_codes: dict[int, int] = {}
        self._in_child = False

    @classmethod
    def from_config(
        cls, config: PoolConfig, lg: Logger | None = None, ops: ProcessOps | None = None
    ) -> ProcessPoolManager:
        return cls(config.max_concurrency, lg=lg, ops=ops)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def max_concurrency(self) -> int:
        return self._config.max_concurrency

    @property
    def debug_mode(self) -> bool:
        return self._config.debug_mode

    @property
    def active_count(self) -> int:
        """Number of children spawned by this pool and not yet reaped."""
        return len(self._children)

    @property
    def active_pids(self) -> frozenset[int]:
        return frozenset(self._children)

    @property
    def is_child(self) -> bool:
        """True only in a process forked by this pool's spawn()."""
        return self._in_child

    @property
    def exit_codes(self) -> dict[int, int]:
        """Exit code of every child reaped so far, keyed by pid."""
        return dict(self._exit_codes)

    @property
    def hooks(self) -> PoolHooks:
        return self._hooks

    # -------------------------------------------------------------------------
    # Hook registration
    # -------------------------------------------------------------------------

    def register_finish_handler(
        self, callback: FinishHandler, pid: int = WILDCARD
    ) -> None:
        """
        Register a callback invoked with the pid of a reaped child.

        Args:
            callback: Called as callback(pid) after the child is reaped
            pid: Child the handler is for; 0 registers the default handler
                used for children without a specific one
        """
        self._hooks.run_on_finish(callback, pid)

    run_on_finish = register_finish_handler

    def run_on_wait(self, callback: EventHandler | None) -> None:
        """Register a callback invoked each time spawn() waits for a slot."""
        self._hooks.run_on_wait(callback)

    def run_on_start(self, callback: EventHandler | None) -> None:
        """Register a callback invoked before each fork."""
        self._hooks.run_on_start(callback)

    def on_finish(self, pid: int = WILDCARD) -> Callable[[FinishHandler], FinishHandler]:
        """Decorator form of register_finish_handler()."""
        return self._hooks.on_finish(pid)

    def on_wait(self, callback: EventHandler) -> EventHandler:
        return self._hooks.on_wait(callback)

    def on_start(self, callback: EventHandler) -> EventHandler:
        return self._hooks.on_start(callback)

    # -------------------------------------------------------------------------
    # Spawning
    # -------------------------------------------------------------------------

    def spawn(self) -> SpawnResult:
        """
        Fork a child, blocking first until a slot is free.

        Returns:
            ParentHandle(pid) in the parent, ChildMarker in the child (and
            in the calling process when max_concurrency is 0)

        Raises:
            InvalidStateError: If called in a process forked by this pool
            ProcessCreationError: If the OS refuses to fork
        """
        if self._in_child:
            raise InvalidStateError(
                "Cannot start another process while in the child process"
            )

        while self.active_count >= self.max_concurrency and self._children:
            self._hooks.fire_wait()
            if self._lg:
                self._lg.trace(
                    "pool full, waiting for a child",
                    extra={"active": self.active_count, "max": self.max_concurrency},
                )
            self._reap_blocking()

        self.reap_available()
        self._hooks.fire_start()

        if self.debug_mode:
            return ChildMarker()

        result = self._ops.fork()
        if result.in_child:
            self._in_child = True
            self._children.clear()
            return ChildMarker()

        self._children.add(result.pid)
        if self._lg:
            self._lg.debug(
                "spawned child",
                extra={"child": result.pid, "active": self.active_count},
            )
        return ParentHandle(result.pid)

    start = spawn

    def finish_current(self, exit_code: int = 0) -> None:
        """
        End the current unit of work.

        In a child forked by this pool the process exits immediately with
        exit_code (0 unless given) and this call never returns. Anywhere
        else, including no-fork mode, it is a no-op.
        """
        if self._in_child:
            self._exit(exit_code)

    finish = finish_current

    def _exit(self, exit_code: int) -> NoReturn:
        if self._lg:
            self._lg.flush()
        self._ops.exit(exit_code)

    # -------------------------------------------------------------------------
    # Reaping
    # -------------------------------------------------------------------------

    def reap_one(self, block: bool = True) -> int | None:
        """
        Reap one exited child.

        Args:
            block: Wait for a child to exit, or only collect one that
                already has

        Returns:
            The reaped pid, or None when nothing was ready or no children
            exist
        """
        result = self._ops.reap(block)
        if result is None:
            return None
        self._handle_reaped(result)
        return result.pid

    wait_one_child = reap_one

    def reap_available(self) -> int:
        """
        Reap every child that has already exited, without blocking.

        Returns:
            Number of pool children reaped
        """
        reaped = 0
        while self._children:
            before = self.active_count
            if self.reap_one(block=False) is None:
                break
            reaped += before - self.active_count
        return reaped

    wait_children = reap_available

    def wait_all(self) -> None:
        """Block until every child spawned by this pool has been reaped."""
        while self._children:
            self._reap_blocking()

    wait_all_children = wait_all

    def _reap_blocking(self) -> None:
        if self.reap_one(block=True) is None:
            self._drop_lost_children()

    def _drop_lost_children(self) -> None:
        """Forget children the OS no longer knows about."""
        lost = sorted(self._children)
        self._children.clear()
        if self._lg:
            self._lg.warning(
                "children reaped outside the pool, dropping them",
                extra={"lost": lost},
            )

    def _handle_reaped(self, result: ReapResult) -> None:
        if result.pid not in self._children:
            if self._lg:
                self._lg.debug(
                    "reaped process not spawned by this pool",
                    extra={"child": result.pid},
                )
            return

        self._children.discard(result.pid)
        code = result.exit_code
        self._exit_codes[result.pid] = code
        if self._lg:
            extra: dict[str, Any] = {
                "child": result.pid,
                "exit_code": code,
                "active": self.active_count,
            }
            if code != 0:
                self._lg.warning("child failed", extra=extra)
            else:
                self._lg.debug("child finished", extra=extra)
        self._hooks.fire_finish(result.pid)

    # -------------------------------------------------------------------------
    # Context manager
    # -------------------------------------------------------------------------

    def __enter__(self) -> ProcessPoolManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """
        Leave the pool block.

        The parent waits for all children. A child that reaches the end of
        the block exits, with status 1 if an exception escaped, so it never
        runs the parent's code after the block. sys.exit() in a child keeps
        its status.
        """
        if not self._in_child:
            if exc_type is None:
                self.wait_all()
            return

        if isinstance(exc, SystemExit):
            self._exit(_system_exit_status(exc))
        if exc is not None:
            if self._lg:
                self._lg.error(
                    "child failed with exception",
                    exc_info=(exc_type, exc, tb),
                    extra={"error": exc},
                )
            else:
                traceback.print_exception(exc_type, exc, tb)
            self._exit(1)
        self._exit(0)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(max_concurrency={self.max_concurrency}, "
            f"active={self.active_count}, is_child={self._in_child})"
        )


def _system_exit_status(exc: SystemExit) -> int:
    """Process status for a SystemExit, following the interpreter's rules."""
    if exc.code is None:
        return 0
    if isinstance(exc.code, int):
        return exc.code
    print(exc.code, file=sys.stderr)
    return 1
