"""
forkpool - a bounded fork-based worker process pool.

Example:
    from forkpool import ProcessPoolManager

    pm = ProcessPoolManager(4)
    pm.register_finish_handler(lambda pid: print("done", pid))
    for url in urls:
        if pm.spawn():
            continue
        download(url)
        pm.finish_current()
    pm.wait_all()
"""

from importlib.metadata import PackageNotFoundError, version

from .config import PoolConfig, load_config
from .exceptions import ConfigError, InvalidStateError, PoolError, ProcessCreationError
from .hooks import PoolHooks
from .manager import ChildMarker, ParentHandle, ProcessPoolManager, SpawnResult
from .process import ForkResult, OSProcessOps, ProcessOps, ReapResult

try:
    __version__ = version("forkpool")
except PackageNotFoundError:
    # Package not installed, use fallback (development mode)
    __version__ = "0.1.0-dev"

__all__ = [
    "__version__",
    # Pool
    "ProcessPoolManager",
    "SpawnResult",
    "ParentHandle",
    "ChildMarker",
    "PoolHooks",
    # Process primitives
    "ProcessOps",
    "OSProcessOps",
    "ForkResult",
    "ReapResult",
    # Configuration
    "PoolConfig",
    "load_config",
    # Exceptions
    "PoolError",
    "ConfigError",
    "InvalidStateError",
    "ProcessCreationError",
]
