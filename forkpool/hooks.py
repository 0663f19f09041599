"""
Lifecycle hooks for the process pool.

PoolHooks stores the callbacks a ProcessPoolManager invokes:

- finish handlers, keyed by child pid, called with the pid once the child
  has been reaped; pid 0 registers a wildcard used for any child without a
  specific handler
- a wait handler, called each time spawn() has to block for a free slot
- a start handler, called once per admitted spawn, before the fork

Unset callbacks are skipped. Exceptions raised by a callback are not caught:
they propagate to the caller of the pool operation that triggered them.
"""

from collections.abc import Callable

FinishHandler = Callable[[int], object]
EventHandler = Callable[[], object]

# Key under which the default finish handler is stored
WILDCARD = 0


class PoolHooks:
    """
    Callback registry for pool lifecycle events.

    Example:
        hooks = PoolHooks()

        @hooks.on_finish()
        def done(pid: int) -> None:
            lg.info("child done", extra={"child": pid})

        hooks.run_on_wait(lambda: lg.debug("pool full"))
    """

    def __init__(self) -> None:
        self._finish: dict[int, FinishHandler] = {}
        self._wait: EventHandler | None = None
        self._start: EventHandler | None = None

    def run_on_finish(self, callback: FinishHandler, pid: int = WILDCARD) -> None:
        """
        Register a finish handler.

        Args:
            callback: Called with the pid of the reaped child
            pid: Child pid the handler is for, or 0 for the default handler
        """
        self._finish[pid or WILDCARD] = callback

    def run_on_wait(self, callback: EventHandler | None) -> None:
        """Register (or clear, with None) the wait handler."""
        self._wait = callback

    def run_on_start(self, callback: EventHandler | None) -> None:
        """Register (or clear, with None) the start handler."""
        self._start = callback

    def on_finish(self, pid: int = WILDCARD) -> Callable[[FinishHandler], FinishHandler]:
        """Decorator form of run_on_finish()."""

        def decorator(callback: FinishHandler) -> FinishHandler:
            self.run_on_finish(callback, pid)
            return callback

        return decorator

    def on_wait(self, callback: EventHandler) -> EventHandler:
        """Decorator form of run_on_wait()."""
        self.run_on_wait(callback)
        return callback

    def on_start(self, callback: EventHandler) -> EventHandler:
        """Decorator form of run_on_start()."""
        self.run_on_start(callback)
        return callback

    def finish_handler(self, pid: int) -> FinishHandler | None:
        """Return the handler for pid, falling back to the wildcard handler."""
        return self._finish.get(pid) or self._finish.get(WILDCARD)

    def fire_finish(self, pid: int) -> bool:
        """
        Invoke the finish handler for a reaped child.

        Returns:
            True if a handler was found and called, False if none is registered
        """
        handler = self.finish_handler(pid)
        if handler is None:
            return False
        handler(pid)
        return True

    def fire_wait(self) -> None:
        if self._wait is not None:
            self._wait()

    def fire_start(self) -> None:
        if self._start is not None:
            self._start()

    def has_finish_handlers(self) -> bool:
        return bool(self._finish)
