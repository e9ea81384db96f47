"""Prometheus metrics for trip action batches."""

from prometheus_client import Counter, Histogram

# Batch metrics
trip_action_batches_total = Counter(
    "trip_action_batches_total",
    "Total trip action batches by outcome",
    ["outcome"],
)

trip_actions_applied_total = Counter(
    "trip_actions_applied_total",
    "Total actions applied, by action type",
    ["action_type"],
)

trip_apply_latency_ms = Histogram(
    "trip_apply_latency_ms",
    "Trip action batch latency in milliseconds",
    ["outcome"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)


class PrometheusTripMetrics:
    """Prometheus-based trip action metrics implementation."""

    def record_batch(self, outcome: str, latency_ms: float) -> None:
        """Count a batch and record its latency."""
        trip_action_batches_total.labels(outcome=outcome).inc()
        trip_apply_latency_ms.labels(outcome=outcome).observe(latency_ms)

    def inc_action(self, action_type: str) -> None:
        """Increment applied action counter."""
        trip_actions_applied_total.labels(action_type=action_type).inc()
