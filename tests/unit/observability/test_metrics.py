"""Tests for Prometheus metrics."""

from __future__ import annotations

from typing import Any

import pytest

from relcache.cache import codec
from relcache.cache.cascade import CascadeExecutor
from relcache.cache.relevance import RelevanceResolver
from relcache.observability.metrics import MetricsRegistry, NoOpMetric, get_metrics


def sample(name: str, **labels: str) -> float:
    value = get_metrics()._registry.get_sample_value(name, labels or None)
    return value or 0.0


class TestNoOpMetric:
    """Tests for the disabled metric stand-in."""

    def test_chaining(self) -> None:
        """labels returns the same no-op."""
        metric = NoOpMetric()
        assert metric.labels(mode="unlink") is metric
        metric.inc()
        metric.observe(0.1)


class TestMetricsRegistry:
    """Tests for registry initialization."""

    def test_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Disabled metrics keep no-op instruments."""
        from relcache.observability import metrics as metrics_module

        monkeypatch.setattr(metrics_module.settings, "enable_metrics", False)
        registry = MetricsRegistry()
        registry.initialize()

        assert isinstance(registry.cascade_operations_total, NoOpMetric)
        assert registry.generate_latest() == b"# Metrics disabled\n"

    def test_global_registry_initialized_once(self) -> None:
        """get_metrics returns the same registry every time."""
        assert get_metrics() is get_metrics()


class TestCascadeMetrics:
    """Cascades are counted."""

    @pytest.mark.asyncio
    async def test_cascade_counted(self, fake_redis: Any) -> None:
        """One operation and every sent key are recorded."""
        if get_metrics()._registry is None:
            pytest.skip("metrics disabled")

        fake_redis.strings["A"] = codec.encode(b"v", ["B"])
        fake_redis.strings["B"] = codec.encode(b"v", [])
        before_ops = sample("relcache_cascade_operations_total", mode="unlink")
        before_keys = sample("relcache_cascade_keys_total", mode="unlink")
        before_missing = sample("relcache_missing_keys_total")

        executor = CascadeExecutor(fake_redis, RelevanceResolver(fake_redis))
        await executor.unlink("A", "missing")

        assert sample("relcache_cascade_operations_total", mode="unlink") == before_ops + 1
        assert sample("relcache_cascade_keys_total", mode="unlink") == before_keys + 2
        assert sample("relcache_missing_keys_total") == before_missing + 1
        assert b"relcache_resolution_duration_seconds" in get_metrics().generate_latest()
