"""
Prometheus metrics for the object cache.

The cache never surfaces store or serialization faults to its callers, so
these counters are the place to watch for them.
"""

import threading
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter


class CacheMetrics:
    """Counters for cache lookups, faults and purges."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = "object_cache"):
        self.registry = registry
        self.namespace = namespace
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache metrics."""
        kwargs = {"registry": self.registry} if self.registry is not None else {}

        self._metrics["requests_total"] = Counter(
            f"{self.namespace}_requests_total",
            "Cache lookups by result",
            ["result"],
            **kwargs
        )

        self._metrics["faults_total"] = Counter(
            f"{self.namespace}_faults_total",
            "Recovered cache faults by kind",
            ["kind"],
            **kwargs
        )

        self._metrics["purges_total"] = Counter(
            f"{self.namespace}_purges_total",
            "Entries purged after a serialization fault",
            **kwargs
        )

    def record_request(self, result: str):
        """Record a lookup outcome (hit, miss, bypass)."""
        self._metrics["requests_total"].labels(result=result).inc()

    def record_fault(self, kind: str):
        """Record a recovered fault."""
        self._metrics["faults_total"].labels(kind=kind).inc()

    def record_purge(self):
        """Record a purge of an unreadable entry."""
        self._metrics["purges_total"].inc()


_default_metrics: Optional[CacheMetrics] = None
_default_lock = threading.Lock()


def get_metrics() -> CacheMetrics:
    """Return the process-wide collector registered on the default registry."""
    global _default_metrics
    with _default_lock:
        if _default_metrics is None:
            _default_metrics = CacheMetrics()
        return _default_metrics
