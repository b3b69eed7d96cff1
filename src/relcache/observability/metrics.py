"""Prometheus metrics for relcache.

Provides:
- Cascade metrics (operations and keys removed, per delete mode)
- Relevance resolution latency
- Missing keys met while walking the relevance graph

Usage:
    from relcache.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cascade_operations_total.labels(mode="unlink").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest

from relcache.config import settings

logger = logging.getLogger(__name__)


class NoOpMetric:
    """No-op metric for when metrics are disabled."""

    def labels(self, **kwargs: Any) -> "NoOpMetric":
        """Return self for chaining."""
        return self

    def inc(self, amount: float = 1) -> None:
        pass

    def observe(self, value: float) -> None:
        pass


_NOOP = NoOpMetric()


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    cascade_operations_total: Any = _NOOP
    cascade_keys_total: Any = _NOOP
    resolution_duration_seconds: Any = _NOOP
    missing_keys_total: Any = _NOOP

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.debug("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.cascade_operations_total = Counter(
            "relcache_cascade_operations_total",
            "Cascading delete operations issued to the store",
            ["mode"],
        )

        self.cascade_keys_total = Counter(
            "relcache_cascade_keys_total",
            "Keys sent to the store by cascading deletes",
            ["mode"],
        )

        self.resolution_duration_seconds = Histogram(
            "relcache_resolution_duration_seconds",
            "Relevance resolution latency in seconds",
            ["kind"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
        )

        self.missing_keys_total = Counter(
            "relcache_missing_keys_total",
            "Keys found absent while resolving relevance",
        )

        self._initialized = True
        logger.debug("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry
