"""
End-to-end scenario: five 100ms children through a two-slot pool.

The pool admits two children at a time, so the run takes three waves
(about 300ms) rather than one (100ms) or five (500ms).
"""

import os
import time

import pytest

from forkpool.manager import ProcessPoolManager
from tests.helpers.fork import child_main, write_stamp

CHILDREN = 5
SLOTS = 2
WORK_SECS = 0.1


def _max_overlap(intervals: list[tuple[float, float]]) -> int:
    events = [(start, 1) for start, _ in intervals] + [(end, -1) for _, end in intervals]
    # Ends sort before starts at equal timestamps
    events.sort(key=lambda e: (e[0], e[1]))
    live = peak = 0
    for _, delta in events:
        live += delta
        peak = max(peak, live)
    return peak


@pytest.mark.e2e
class TestAdmissionWaves:
    """Test the bounded pool under a timed workload."""

    def test_two_slots_five_children(self, temp_dir):
        pm = ProcessPoolManager(SLOTS)
        finished: list[int] = []
        pm.register_finish_handler(finished.append)
        spawned: list[int] = []
        observed_active: list[int] = []

        started = time.monotonic()
        for i in range(CHILDREN):
            result = pm.spawn()
            if result:
                spawned.append(result.pid)
                observed_active.append(pm.active_count)
                continue

            def work(i=i):
                begin = time.time()
                time.sleep(WORK_SECS)
                write_stamp(temp_dir / f"{i}.span", f"{begin!r},{time.time()!r}")

            child_main(pm, work)

        pm.wait_all()
        elapsed = time.monotonic() - started

        assert pm.active_count == 0
        assert max(observed_active) <= SLOTS
        assert sorted(finished) == sorted(spawned)
        assert len(set(finished)) == CHILDREN
        assert all(code == 0 for code in pm.exit_codes.values())

        spans = []
        for i in range(CHILDREN):
            begin, end = (temp_dir / f"{i}.span").read_text().split(",")
            spans.append((float(begin), float(end)))
        assert _max_overlap(spans) <= SLOTS

        # Three admission waves of WORK_SECS each
        assert elapsed >= 3 * WORK_SECS * 0.95
        assert elapsed < 5 * WORK_SECS, f"took {elapsed:.3f}s"
        assert os.getpid() not in spawned
