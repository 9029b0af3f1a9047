from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

requests_total = Counter(
    "oai_requests_total",
    "Total requests sent to the OpenAI API",
    labelnames=["endpoint", "status"],
)

request_latency_seconds = Histogram(
    "oai_request_latency_seconds",
    "OpenAI API request latency (seconds)",
    buckets=[0.1, 0.3, 0.5, 1, 2, 5, 10, 30, 60, 120],
    labelnames=["endpoint"],
)

retries_total = Counter(
    "oai_retries_total",
    "Retried OpenAI API attempts",
    labelnames=["endpoint", "reason"],
)

circuit_breaker_events_total = Counter(
    "oai_circuit_breaker_events_total",
    "Circuit breaker events",
    labelnames=["event"],
)


_metrics_started = False


def maybe_start_metrics(*, enable: bool, bind: str, port: int) -> bool:
    """Start the exporter once per process; returns True only on the call that started it."""
    global _metrics_started
    if not enable or _metrics_started:
        return False
    start_http_server(port, addr=bind)
    _metrics_started = True
    return True
