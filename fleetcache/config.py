"""
fleetcache/config.py - Settings and environment helpers

Central place for caching-agent defaults. Values that vary per deployment are
read from ``FLEETCACHE_*`` environment variables through ``AgentConfig.from_env``.

Example:
    from fleetcache.config import AgentConfig, configure_logging

    configure_logging()
    config = AgentConfig.from_env()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from .exceptions import ConfigError

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Process-wide defaults (immutable)"""

    DEFAULT_PROVIDER: str = "azure"

    # on-demand snapshots and eviction markers share the same lifetime
    ON_DEMAND_TTL_SECONDS: int = 10 * 60
    EVICTION_TTL_SECONDS: int = 10 * 60

    SCAN_MAX_WORKERS: int = 8


settings = Settings()


def get_env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable

    Unrecognized values fall back to ``default``.
    """
    value = os.environ.get(name)
    if value is None:
        return default

    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def get_env_int(name: str, default: int = 0) -> int:
    """Read an integer environment variable, ``default`` if missing or invalid"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class AgentConfig:
    """Scope and tuning for one caching agent

    Attributes:
        account: Account name the agent is responsible for
        region: Region the agent is responsible for
        provider: Provider prefix used in cache keys
        max_workers: Worker threads for the per-resource scan loop
        on_demand_ttl_seconds: TTL of on-demand snapshots and eviction markers
        evict_corrupt_on_demand: Evict snapshots that fail to decode
    """

    account: str
    region: str
    provider: str = settings.DEFAULT_PROVIDER
    max_workers: int = settings.SCAN_MAX_WORKERS
    on_demand_ttl_seconds: int = settings.ON_DEMAND_TTL_SECONDS
    evict_corrupt_on_demand: bool = True

    def __post_init__(self) -> None:
        if not self.account:
            raise ConfigError("account", "account is required")
        if not self.region:
            raise ConfigError("region", "region is required")
        if self.max_workers < 1:
            raise ConfigError("max_workers", f"must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(cls) -> AgentConfig:
        return cls(
            account=os.environ.get("FLEETCACHE_ACCOUNT", ""),
            region=os.environ.get("FLEETCACHE_REGION", ""),
            provider=os.environ.get("FLEETCACHE_PROVIDER", settings.DEFAULT_PROVIDER),
            max_workers=get_env_int("FLEETCACHE_SCAN_MAX_WORKERS", settings.SCAN_MAX_WORKERS),
            on_demand_ttl_seconds=get_env_int(
                "FLEETCACHE_ON_DEMAND_TTL_SECONDS", settings.ON_DEMAND_TTL_SECONDS
            ),
            evict_corrupt_on_demand=get_env_bool("FLEETCACHE_EVICT_CORRUPT_ON_DEMAND", True),
        )


@dataclass
class LogConfig:
    """Logging configuration"""

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    loggers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> LogConfig:
        return cls(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            format=os.environ.get("LOG_FORMAT", cls.format),
        )


def configure_logging(config: LogConfig | None = None) -> None:
    """Apply a LogConfig to the root logger"""
    config = config or LogConfig.from_env()
    logging.basicConfig(
        level=config.level.upper(),
        format=config.format,
        datefmt=config.date_format,
    )
    for name, level in config.loggers.items():
        logging.getLogger(name).setLevel(level.upper())
