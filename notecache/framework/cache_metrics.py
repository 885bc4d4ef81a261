"""Cache metrics for Prometheus monitoring."""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Gauge, CollectorRegistry
import structlog

logger = structlog.get_logger()


class CacheMetrics:
    """Snapshot cache metrics."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.logger = structlog.get_logger("cache-metrics")

        self.cache_hits_total = Counter(
            'notecache_hits_total',
            'Total snapshot cache hits',
            ['tier'],
            registry=self.registry
        )

        self.cache_misses_total = Counter(
            'notecache_misses_total',
            'Total snapshot cache misses',
            registry=self.registry
        )

        self.cache_invalidations_total = Counter(
            'notecache_invalidations_total',
            'Total snapshot invalidations',
            ['reason'],
            registry=self.registry
        )

        self.cache_evictions_total = Counter(
            'notecache_evictions_total',
            'Total snapshots evicted by the sweep',
            registry=self.registry
        )

        self.secondary_errors_total = Counter(
            'notecache_secondary_errors_total',
            'Total secondary tier failures',
            ['operation'],
            registry=self.registry
        )

        self.cache_entries = Gauge(
            'notecache_entries',
            'Snapshots held in memory',
            registry=self.registry
        )

    def record_hit(self, tier: str) -> None:
        self.cache_hits_total.labels(tier=tier).inc()

    def record_miss(self) -> None:
        self.cache_misses_total.inc()

    def record_invalidation(self, reason: str) -> None:
        self.cache_invalidations_total.labels(reason=reason).inc()

    def record_evictions(self, count: int) -> None:
        if count:
            self.cache_evictions_total.inc(count)

    def record_secondary_error(self, operation: str) -> None:
        self.secondary_errors_total.labels(operation=operation).inc()

    def set_entries(self, count: int) -> None:
        self.cache_entries.set(count)

    def get_sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Read a sample value, 0.0 when it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get cache metrics summary."""
        return {
            "hits_memory": self.get_sample("notecache_hits_total", {"tier": "memory"}),
            "hits_secondary": self.get_sample("notecache_hits_total", {"tier": "secondary"}),
            "misses": self.get_sample("notecache_misses_total"),
            "evictions": self.get_sample("notecache_evictions_total"),
            "entries": self.get_sample("notecache_entries"),
        }
