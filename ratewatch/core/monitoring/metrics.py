"""Prometheus metrics helpers for ratewatch services."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


@dataclass
class _ProviderStats:
    """Internal container tracking provider level success and failure counts."""

    total: int = 0
    failures: int = 0


class MetricsCollector:
    """Collects and exposes Prometheus metrics for collection rounds and the funding log."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.fetch_latency_seconds = Histogram(
            "ratewatch_fetch_latency_seconds",
            "Latency distribution for exchange fetches.",
            ("provider",),
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
            registry=self.registry,
        )
        self.fetch_requests_total = Counter(
            "ratewatch_fetch_requests_total",
            "Total count of exchange fetches.",
            ("provider",),
            registry=self.registry,
        )
        self.fetch_failures_total = Counter(
            "ratewatch_fetch_failures_total",
            "Total count of failed or timed out exchange fetches.",
            ("provider",),
            registry=self.registry,
        )
        self.provider_error_rate = Gauge(
            "ratewatch_provider_error_rate",
            "Error rate for exchange fetches since start (0-1 range).",
            ("provider",),
            registry=self.registry,
        )
        self.log_writes_total = Counter(
            "ratewatch_log_writes_total",
            "Funding log block writes grouped by outcome.",
            ("outcome",),
            registry=self.registry,
        )
        self.collection_rounds_total = Counter(
            "ratewatch_collection_rounds_total",
            "Collection rounds grouped by outcome.",
            ("outcome",),
            registry=self.registry,
        )
        self._provider_stats: DefaultDict[str, _ProviderStats] = defaultdict(_ProviderStats)

    def observe_fetch(self, provider: str, latency_seconds: float, *, success: bool = True) -> None:
        """Record one exchange fetch."""

        self.fetch_latency_seconds.labels(provider=provider).observe(latency_seconds)
        self._record_outcome(provider=provider, success=success)

    def record_log_write(self, *, success: bool) -> None:
        self.log_writes_total.labels(outcome="success" if success else "failure").inc()

    def record_round(self, outcome: str) -> None:
        """Count a collection round; outcome is ``completed``, ``skipped`` or ``failed``."""

        label = outcome if outcome in _ALLOWED_ROUND_OUTCOMES else "__other__"
        self.collection_rounds_total.labels(outcome=label).inc()

    def render(self) -> bytes:
        """Render metrics in Prometheus exposition format."""

        return generate_latest(self.registry)

    def _record_outcome(self, *, provider: str, success: bool) -> None:
        stats = self._provider_stats[provider]
        stats.total += 1
        self.fetch_requests_total.labels(provider=provider).inc()
        if not success:
            stats.failures += 1
            self.fetch_failures_total.labels(provider=provider).inc()
        self.provider_error_rate.labels(provider=provider).set(stats.failures / stats.total)


_DEFAULT_COLLECTOR: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Return the global metrics collector instance."""

    global _DEFAULT_COLLECTOR
    if _DEFAULT_COLLECTOR is None:
        _DEFAULT_COLLECTOR = MetricsCollector()
    return _DEFAULT_COLLECTOR


def configure_metrics_collector(collector: MetricsCollector | None) -> None:
    """Override the global metrics collector for application wiring or tests."""

    global _DEFAULT_COLLECTOR
    _DEFAULT_COLLECTOR = collector


_ALLOWED_ROUND_OUTCOMES = {"completed", "skipped", "failed"}
