"""Prometheus metrics for context injection and retrieval."""

from prometheus_client import Counter, Histogram

context_injections_total = Counter(
    "context_injections_total",
    "Chat requests by context injection outcome",
    ["mode", "outcome"],
)

retrieval_failures_total = Counter(
    "retrieval_failures_total",
    "Failures while assembling retrieved context",
    ["stage"],
)

embedding_latency_ms = Histogram(
    "embedding_latency_ms",
    "Embedding request latency in milliseconds",
    ["provider"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000],
)


class PrometheusContextMetrics:
    """Prometheus-based context metrics implementation."""

    def record_injection(self, mode: str, outcome: str) -> None:
        """Count one injection decision."""
        context_injections_total.labels(mode=mode, outcome=outcome).inc()

    def inc_retrieval_failure(self, stage: str) -> None:
        """Count a retrieval failure at the given stage (embed, search, fetch)."""
        retrieval_failures_total.labels(stage=stage).inc()

    def record_embedding_latency(self, provider: str, latency_ms: float) -> None:
        """Record embedding latency."""
        embedding_latency_ms.labels(provider=provider).observe(latency_ms)


metrics = PrometheusContextMetrics()
