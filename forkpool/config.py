"""
Configuration for the process pool.

PoolConfig holds the concurrency bound. load_config() reads a YAML file and
applies environment variable overrides using the FORKPOOL_ prefix:

    FORKPOOL_<SECTION>_<KEY>=value

Examples:
    FORKPOOL_POOL_MAX_CONCURRENCY=8
    FORKPOOL_LOGGING_LEVEL=debug

Example YAML:
    pool:
      max_concurrency: 4
    logging:
      level: info
      colors: true
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigError

DEFAULT_ENV_PREFIX = "FORKPOOL_"

# Refuse config files larger than this
MAX_CONFIG_SIZE_BYTES = 1024 * 1024


@dataclass(frozen=True)
class PoolConfig:
    """
    Immutable pool configuration.

    Attributes:
        max_concurrency: Maximum number of live children. 0 selects
            debug/no-fork mode, where spawn() never creates a process.
    """

    max_concurrency: int

    def __post_init__(self) -> None:
        value = self.max_concurrency
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(
                "max_concurrency must be an integer", max_concurrency=value
            )
        if value < 0:
            raise ConfigError(
                "max_concurrency must not be negative", max_concurrency=value
            )

    @property
    def debug_mode(self) -> bool:
        """True when no child processes will be forked."""
        return self.max_concurrency == 0

    @classmethod
    def from_config(cls, config: dict[str, Any], section: str = "pool") -> PoolConfig:
        """
        Create PoolConfig from a configuration dictionary.

        Missing max_concurrency defaults to the number of CPUs.

        Args:
            config: Configuration dictionary (e.g., from load_config())
            section: Name of the pool section (default: "pool")
        """
        current = config.get(section) or {}
        if not isinstance(current, dict):
            raise ConfigError("config section must be a mapping", section=section)
        value = current.get("max_concurrency")
        if value is None:
            value = os.cpu_count() or 1
        return cls(max_concurrency=value)


def load_config(
    path: str | Path | None = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    enable_env_overrides: bool = True,
) -> dict[str, Any]:
    """
    Load configuration from a YAML file and the environment.

    Args:
        path: YAML file to read, or None to start from an empty config
        env_prefix: Prefix of environment variables that override values
        enable_env_overrides: Whether to apply environment overrides

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    data: dict[str, Any] = {}
    if path is not None:
        data = _read_yaml(Path(path))
    if enable_env_overrides:
        _apply_env_overrides(data, env_prefix)
    return data


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        size = path.stat().st_size
        if size > MAX_CONFIG_SIZE_BYTES:
            raise ConfigError(
                "config file too large", path=str(path), size=size
            )
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError("cannot read config file", path=str(path), error=e) from e
    except yaml.YAMLError as e:
        raise ConfigError("invalid YAML in config file", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a mapping", path=str(path))
    return data


def _apply_env_overrides(data: dict[str, Any], env_prefix: str) -> None:
    """Apply <PREFIX><SECTION>_<KEY> environment variables to data in place."""
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue
        # FORKPOOL_POOL_MAX_CONCURRENCY -> ["pool", "max_concurrency"]
        parts = env_key[len(env_prefix) :].lower().split("_", 1)
        if len(parts) != 2 or not all(parts):
            continue
        section, key = parts
        current = data.get(section)
        if not isinstance(current, dict):
            current = data[section] = {}
        current[key] = _convert_env_value(env_value)


def _convert_env_value(value: str) -> bool | int | float | str | None:
    """Convert environment variable string to appropriate type."""
    if value.lower() in ("null", "none", ""):
        return None

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    return value
