# ABOUTME: Prometheus instruments for the ingestion pipeline.
# ABOUTME: Counters for success/failure/skip, run duration histogram, last-count and success-rate gauges.

from functools import lru_cache

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram


class IngestionMetrics:
    """Ingestion side-channel metrics.

    The success rate is successes / (successes + failures) over the lifetime of
    this instance, which is the process lifetime for the default instance.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.success = Counter(
            "legistrack_ingestion_success",
            "Ingestion runs completed successfully",
            registry=registry,
        )
        self.failure = Counter(
            "legistrack_ingestion_failure",
            "Ingestion runs that failed",
            registry=registry,
        )
        self.skipped = Counter(
            "legistrack_ingestion_skipped",
            "Ingestion runs skipped because a successful run exists for the same from_date",
            registry=registry,
        )
        self.duration = Histogram(
            "legistrack_ingestion_duration_seconds",
            "Duration of successful ingestion runs",
            registry=registry,
        )
        self.last_document_count = Gauge(
            "legistrack_ingestion_last_document_count",
            "Documents persisted by the last successful run",
            registry=registry,
        )
        self.success_rate = Gauge(
            "legistrack_ingestion_success_rate",
            "Share of successful runs among completed runs",
            registry=registry,
        )
        self._successes = 0
        self._failures = 0

    def record_success(self, document_count: int, duration_seconds: float) -> None:
        self._successes += 1
        self.success.inc()
        self.duration.observe(duration_seconds)
        self.last_document_count.set(document_count)
        self._update_success_rate()

    def record_failure(self) -> None:
        self._failures += 1
        self.failure.inc()
        self._update_success_rate()

    def record_skipped(self) -> None:
        self.skipped.inc()

    def _update_success_rate(self) -> None:
        completed = self._successes + self._failures
        self.success_rate.set(self._successes / completed if completed else 0.0)


@lru_cache
def get_ingestion_metrics() -> IngestionMetrics:
    """Process-wide metrics bound to the default registry."""
    return IngestionMetrics()
