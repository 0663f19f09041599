"""
Fake process layer for deterministic pool tests.

FakeProcessOps hands out increasing pids instead of forking and keeps its
own table of live and exited children. A blocking reap with nothing exited
completes the oldest live child, which stands in for "wait until some child
exits".
"""

from forkpool.exceptions import ProcessCreationError
from forkpool.process import ForkResult, ReapResult


class ChildExit(Exception):
    """Raised by FakeProcessOps.exit() in place of terminating the process."""

    def __init__(self, code: int) -> None:
        super().__init__(f"child exit {code}")
        self.code = code


class FakeProcessOps:
    """In-memory ProcessOps implementation."""

    def __init__(self, first_pid: int = 1000) -> None:
        self._first_pid = first_pid
        self.next_pid = first_pid
        self.live: list[int] = []
        self.exited: list[tuple[int, int]] = []
        self.fork_calls = 0
        self.reap_calls: list[bool] = []
        self.exit_codes: list[int] = []
        self.fail_next_fork = False
        self.child_next_fork = False

    @property
    def forked(self) -> int:
        """Number of children actually created."""
        return self.next_pid - self._first_pid

    def fork(self) -> ForkResult:
        self.fork_calls += 1
        if self.fail_next_fork:
            self.fail_next_fork = False
            raise ProcessCreationError(
                "Cannot fork: Resource temporarily unavailable", errno=11
            )
        if self.child_next_fork:
            self.child_next_fork = False
            return ForkResult(0)
        pid = self.next_pid
        self.next_pid += 1
        self.live.append(pid)
        return ForkResult(pid)

    def reap(self, block: bool) -> ReapResult | None:
        self.reap_calls.append(block)
        if self.exited:
            pid, code = self.exited.pop(0)
            return ReapResult(pid, code << 8)
        if block and self.live:
            return ReapResult(self.live.pop(0), 0)
        return None

    def exit(self, code: int):
        self.exit_codes.append(code)
        raise ChildExit(code)

    # Test controls

    def finish_child(self, pid: int, code: int = 0) -> None:
        """Mark a live child as exited, ready to be reaped."""
        self.live.remove(pid)
        self.exited.append((pid, code))

    def add_foreign_exit(self, pid: int, code: int = 0) -> None:
        """Queue an exit of a process the pool did not spawn."""
        self.exited.append((pid, code))

    def lose_children(self) -> None:
        """Forget all live children, as if reaped by someone else."""
        self.live.clear()
