"""
Pytest configuration and shared fixtures.

This module provides central pytest configuration, custom markers,
and shared fixtures for the forkpool test suite.
"""

import io
import shutil
import sys
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from forkpool.log import LogConfig, Logger, create_lg
from tests.helpers.fake_ops import FakeProcessOps

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated, no real processes)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (fork real child processes)"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests (timing-sensitive pool scenarios)"
    )
    config.addinivalue_line("markers", "property: Property-based tests (hypothesis)")
    config.addinivalue_line("markers", "slow: Tests that take >1 second to run")


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Provide a temporary directory that is cleaned up after the test.

    Yields:
        Path: Temporary directory path
    """
    temp_path = Path(tempfile.mkdtemp(prefix="forkpool-test-"))
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_ops() -> FakeProcessOps:
    """Provide a fake process layer that never forks."""
    return FakeProcessOps()


@pytest.fixture
def log_stream() -> io.StringIO:
    """Stream receiving output of the lg fixture."""
    return io.StringIO()


@pytest.fixture
def lg(log_stream: io.StringIO) -> Logger:
    """Provide an uncolored trace-level logger writing to log_stream."""
    return create_lg(
        "test", LogConfig.from_params("trace", colors=False), stream=log_stream
    )


# =============================================================================
# Test Collection Hooks
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """
    Add the 'unit' marker to tests without other markers, and skip
    fork-based tests on platforms without fork().
    """
    no_fork = pytest.mark.skip(reason="os.fork() not available on this platform")
    for item in items:
        marks = {mark.name for mark in item.iter_markers()}
        if not marks & {"integration", "e2e"}:
            item.add_marker(pytest.mark.unit)
        elif sys.platform == "win32":
            item.add_marker(no_fork)
