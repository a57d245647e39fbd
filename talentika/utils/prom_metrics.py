"""
Prometheus metrics registration and helpers.

Exports:
- observe_request(...): record HTTP request metrics
- observe_backend_call(...): record one generic backend client operation
- observe_remote_call(...): record one remote function / storage call
- metrics_latest(): return text exposition from correct registry (handles multiprocess)
- CONTENT_TYPE_LATEST: correct Prometheus content type
"""

import os
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess


REQUEST_COUNTER = Counter(
    'talentika_http_requests_total', 'Total HTTP requests', ['endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'talentika_http_request_latency_seconds', 'HTTP request latency seconds', ['endpoint']
)

BACKEND_CALLS = Counter(
    'talentika_backend_calls_total', 'Generic backend client operations', ['table', 'operation', 'outcome']
)

REMOTE_CALLS = Counter(
    'talentika_remote_calls_total', 'Remote function and storage calls', ['target', 'outcome']
)

REMOTE_LATENCY = Histogram(
    'talentika_remote_call_latency_seconds', 'Remote call latency seconds', ['target']
)


def observe_request(endpoint: str, status: int, latency_seconds: float) -> None:
    REQUEST_COUNTER.labels(endpoint=endpoint, status=str(status)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency_seconds)


def observe_backend_call(table: str, operation: str, ok: bool) -> None:
    BACKEND_CALLS.labels(table=table, operation=operation, outcome='ok' if ok else 'error').inc()


def observe_remote_call(target: str, latency_seconds: float, ok: bool) -> None:
    REMOTE_CALLS.labels(target=target, outcome='ok' if ok else 'error').inc()
    REMOTE_LATENCY.labels(target=target).observe(latency_seconds)


def metrics_latest() -> bytes:
    """Return the Prometheus text exposition, multiprocess-aware if configured."""
    prom_mp_dir = os.getenv('PROMETHEUS_MULTIPROC_DIR')
    if prom_mp_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return generate_latest(registry)
    return generate_latest()


__all__ = [
    'observe_request',
    'observe_backend_call',
    'observe_remote_call',
    'metrics_latest',
    'CONTENT_TYPE_LATEST',
]
