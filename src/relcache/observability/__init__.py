"""Observability module for relcache.

Provides structured logging and metrics:
- JSON / console logging with operation IDs
- Prometheus metrics for cascades and relevance resolution
"""

from relcache.observability.logging import (
    LogContext,
    configure_logging,
    get_logger,
    operation_id_var,
)
from relcache.observability.metrics import (
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    "operation_id_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
]
