"""
tests/test_config.py - settings, AgentConfig and logging configuration
"""

import logging
from dataclasses import FrozenInstanceError

import pytest

from fleetcache.config import (
    AgentConfig,
    LogConfig,
    Settings,
    configure_logging,
    get_env_bool,
    get_env_int,
    settings,
)
from fleetcache.exceptions import ConfigError


class TestSettings:
    def test_defaults(self):
        assert settings.DEFAULT_PROVIDER == "azure"
        assert settings.ON_DEMAND_TTL_SECONDS == 600
        assert settings.EVICTION_TTL_SECONDS == 600

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            Settings().SCAN_MAX_WORKERS = 1  # type: ignore[misc]


class TestEnvHelpers:
    @pytest.mark.parametrize("value", ["true", "1", "YES", " on "])
    def test_bool_true(self, monkeypatch, value):
        monkeypatch.setenv("FLEETCACHE_TEST_FLAG", value)
        assert get_env_bool("FLEETCACHE_TEST_FLAG") is True

    @pytest.mark.parametrize("value", ["false", "0", "No", "off"])
    def test_bool_false(self, monkeypatch, value):
        monkeypatch.setenv("FLEETCACHE_TEST_FLAG", value)
        assert get_env_bool("FLEETCACHE_TEST_FLAG", default=True) is False

    def test_bool_unrecognized(self, monkeypatch):
        monkeypatch.setenv("FLEETCACHE_TEST_FLAG", "maybe")
        assert get_env_bool("FLEETCACHE_TEST_FLAG", default=True) is True

    def test_bool_missing(self, monkeypatch):
        monkeypatch.delenv("FLEETCACHE_TEST_FLAG", raising=False)
        assert get_env_bool("FLEETCACHE_TEST_FLAG") is False

    def test_int(self, monkeypatch):
        monkeypatch.setenv("FLEETCACHE_TEST_INT", "42")
        assert get_env_int("FLEETCACHE_TEST_INT") == 42

    def test_int_invalid(self, monkeypatch):
        monkeypatch.setenv("FLEETCACHE_TEST_INT", "many")
        assert get_env_int("FLEETCACHE_TEST_INT", 7) == 7


class TestAgentConfig:
    def test_defaults(self):
        config = AgentConfig(account="my-acct", region="eastus")

        assert config.provider == "azure"
        assert config.max_workers == settings.SCAN_MAX_WORKERS
        assert config.on_demand_ttl_seconds == 600
        assert config.evict_corrupt_on_demand is True

    @pytest.mark.parametrize(
        "kwargs,key",
        [
            ({"account": "", "region": "eastus"}, "account"),
            ({"account": "my-acct", "region": ""}, "region"),
            ({"account": "my-acct", "region": "eastus", "max_workers": 0}, "max_workers"),
        ],
    )
    def test_invalid(self, kwargs, key):
        with pytest.raises(ConfigError) as exc_info:
            AgentConfig(**kwargs)

        assert exc_info.value.config_key == key

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FLEETCACHE_ACCOUNT", "prod")
        monkeypatch.setenv("FLEETCACHE_REGION", "westus")
        monkeypatch.setenv("FLEETCACHE_PROVIDER", "aws")
        monkeypatch.setenv("FLEETCACHE_SCAN_MAX_WORKERS", "3")
        monkeypatch.setenv("FLEETCACHE_ON_DEMAND_TTL_SECONDS", "120")
        monkeypatch.setenv("FLEETCACHE_EVICT_CORRUPT_ON_DEMAND", "false")

        config = AgentConfig.from_env()

        assert config == AgentConfig(
            account="prod",
            region="westus",
            provider="aws",
            max_workers=3,
            on_demand_ttl_seconds=120,
            evict_corrupt_on_demand=False,
        )

    def test_from_env_requires_account(self, monkeypatch):
        monkeypatch.delenv("FLEETCACHE_ACCOUNT", raising=False)
        monkeypatch.setenv("FLEETCACHE_REGION", "westus")

        with pytest.raises(ConfigError):
            AgentConfig.from_env()


class TestLogConfig:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.delenv("LOG_FORMAT", raising=False)

        config = LogConfig.from_env()

        assert config.level == "DEBUG"
        assert config.format == LogConfig().format

    def test_configure_logging_sets_logger_levels(self):
        configure_logging(LogConfig(level="info", loggers={"fleetcache.agent": "debug"}))

        assert logging.getLogger("fleetcache.agent").level == logging.DEBUG
