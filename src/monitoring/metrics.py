"""
Metrics Collection
Prometheus metrics for cache behaviour and upstream provider calls
"""

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the weather service.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

        # Cache metrics
        self.cache_hits = Counter(
            "weather_cache_hits_total",
            "Total number of cache hits",
            ["cache"],
            registry=registry,
        )
        self.cache_misses = Counter(
            "weather_cache_misses_total",
            "Total number of cache misses",
            ["cache"],
            registry=registry,
        )
        self.cache_fills = Counter(
            "weather_cache_fills_total",
            "Loader invocations by outcome",
            ["cache", "status"],
            registry=registry,
        )
        self.cache_evictions = Counter(
            "weather_cache_evictions_total",
            "Entries dropped by expiry sweeps",
            ["cache"],
            registry=registry,
        )
        self.cache_persist_failures = Counter(
            "weather_cache_persist_failures_total",
            "Snapshot writes that failed",
            ["cache"],
            registry=registry,
        )
        self.cache_entries = Gauge(
            "weather_cache_entries",
            "Entries currently held in memory",
            ["cache"],
            registry=registry,
        )

        # Upstream metrics
        self.upstream_calls_total = Counter(
            "weather_upstream_calls_total",
            "Total number of provider calls",
            ["provider", "status"],
            registry=registry,
        )
        self.upstream_duration = Histogram(
            "weather_upstream_duration_seconds",
            "Provider call duration in seconds",
            ["provider"],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=registry,
        )

        # Error metrics
        self.errors_total = Counter(
            "weather_errors_total",
            "Errors returned to HTTP callers",
            ["error_type", "endpoint"],
            registry=registry,
        )

        # System metrics
        self.uptime = Gauge(
            "weather_uptime_seconds",
            "Service uptime in seconds",
            registry=registry,
        )
        self.start_time = time.time()

    def record_cache_hit(self, cache: str) -> None:
        """Record a cache hit."""
        self.cache_hits.labels(cache=cache).inc()

    def record_cache_miss(self, cache: str) -> None:
        """Record a cache miss."""
        self.cache_misses.labels(cache=cache).inc()

    def record_cache_fill(self, cache: str, status: str) -> None:
        self.cache_fills.labels(cache=cache, status=status).inc()

    def record_evictions(self, cache: str, count: int) -> None:
        if count:
            self.cache_evictions.labels(cache=cache).inc(count)

    def record_persist_failure(self, cache: str) -> None:
        self.cache_persist_failures.labels(cache=cache).inc()

    def set_cache_entries(self, cache: str, size: int) -> None:
        self.cache_entries.labels(cache=cache).set(size)

    def record_upstream_call(self, provider: str, status: str, duration: float) -> None:
        """Record a provider call."""
        self.upstream_calls_total.labels(provider=provider, status=status).inc()
        self.upstream_duration.labels(provider=provider).observe(duration)

    def record_error(self, error_type: str, endpoint: str) -> None:
        """Record an error."""
        self.errors_total.labels(error_type=error_type, endpoint=endpoint).inc()

    def update_uptime(self) -> None:
        """Update the uptime metric."""
        self.uptime.set(time.time() - self.start_time)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        self.update_uptime()
        return generate_latest(self.registry)


# Global metrics collector instance
metrics_collector = MetricsCollector()
