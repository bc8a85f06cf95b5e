"""
tests/cache/test_metrics.py - OnDemandMetrics
"""

import pytest

from fleetcache.cache.metrics import OnDemandMetrics


class TestOnDemandMetrics:
    def test_returns_wrapped_value(self):
        metrics = OnDemandMetrics("azure:ServerGroup")

        assert metrics.read_data(lambda: 42) == 42
        assert metrics.transform_data(lambda: "graph") == "graph"
        assert metrics.on_demand_store(lambda: None) is None

    def test_counts_calls_per_phase(self):
        metrics = OnDemandMetrics("azure:ServerGroup")

        metrics.read_data(lambda: 1)
        metrics.read_data(lambda: 1)
        metrics.on_demand_store(lambda: 1)

        stats = metrics.stats
        assert stats["read"]["count"] == 2
        assert stats["transform"]["count"] == 0
        assert stats["store"]["count"] == 1
        assert stats["read"]["total_seconds"] >= 0

    def test_failure_is_counted_and_reraised(self):
        metrics = OnDemandMetrics("azure:ServerGroup")

        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            metrics.read_data(fail)

        read = metrics.stats["read"]
        assert read["count"] == 1
        assert read["failures"] == 1
