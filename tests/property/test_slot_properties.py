"""Property-based tests for pool slot accounting."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from forkpool.manager import ParentHandle, ProcessPoolManager
from tests.helpers.fake_ops import FakeProcessOps

OPERATIONS = st.lists(
    st.one_of(
        st.just(("spawn",)),
        st.tuples(st.just("exit"), st.integers(min_value=0, max_value=20)),
        st.just(("poll",)),
        st.just(("sweep",)),
    ),
    max_size=60,
)


@pytest.mark.property
@pytest.mark.unit
class TestSlotAccountingProperties:
    """Slot accounting holds for arbitrary spawn/exit/reap sequences."""

    @given(max_concurrency=st.integers(min_value=1, max_value=5), ops=OPERATIONS)
    @settings(max_examples=200)
    def test_active_count_matches_unreaped(self, max_concurrency, ops):
        fake = FakeProcessOps()
        pm = ProcessPoolManager(max_concurrency, ops=fake)
        spawned: list[int] = []
        finished: list[int] = []
        pm.register_finish_handler(finished.append)

        for op in ops:
            if op[0] == "spawn":
                result = pm.spawn()
                assert isinstance(result, ParentHandle)
                spawned.append(result.pid)
                assert pm.active_count <= max_concurrency
            elif op[0] == "exit" and fake.live:
                fake.finish_child(fake.live[op[1] % len(fake.live)], op[1] % 3)
            elif op[0] == "poll":
                pm.reap_one(block=False)
            elif op[0] == "sweep":
                pm.reap_available()

            assert pm.active_count >= 0
            assert pm.active_count == len(spawned) - len(finished)
            assert pm.active_pids == frozenset(spawned) - frozenset(finished)

        pm.wait_all()

        assert pm.active_count == 0
        assert sorted(finished) == sorted(spawned)
        assert len(set(finished)) == len(finished)
        assert set(pm.exit_codes) == set(spawned)

    @given(
        max_concurrency=st.integers(min_value=1, max_value=4),
        count=st.integers(min_value=0, max_value=20),
    )
    def test_blocking_waits_only_when_full(self, max_concurrency, count):
        fake = FakeProcessOps()
        pm = ProcessPoolManager(max_concurrency, ops=fake)
        waits: list[int] = []
        pm.run_on_wait(lambda: waits.append(pm.active_count))

        for _ in range(count):
            pm.spawn()

        # Children never exit on their own here, so every spawn past the
        # bound waits exactly once, and only when the pool is full
        assert len(waits) == max(0, count - max_concurrency)
        assert all(active == max_concurrency for active in waits)

    @given(spawns=st.integers(min_value=0, max_value=10))
    def test_debug_mode_never_forks(self, spawns):
        fake = FakeProcessOps()
        pm = ProcessPoolManager(0, ops=fake)
        for _ in range(spawns):
            assert not pm.spawn()
            assert pm.finish_current() is None
        assert fake.fork_calls == 0
        assert fake.reap_calls == []
        assert pm.active_count == 0
