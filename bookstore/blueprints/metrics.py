"""
Prometheus metrics for the order service.

Two groups of series: requests served by this app (per blueprint, so the
order builder, customer history and admin screens can be told apart) and
requests sent to the remote bookstore API (per client operation).
/metrics is unauthenticated; keep it on the internal network.
"""
import os
import time

from flask import Blueprint, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram,
    generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Under Gunicorn each worker writes samples to PROMETHEUS_MULTIPROC_DIR instead of a registry
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None
METRIC_REGISTRY = None if MULTIPROCESS_MODE else REGISTRY

app_requests_total = Counter(
    'http_requests_total', 'Requests served, by blueprint and status',
    ['method', 'blueprint', 'http_status'], registry=METRIC_REGISTRY,
)
app_request_seconds = Histogram(
    'http_request_duration_seconds', 'Time spent serving a request',
    ['method', 'blueprint'], registry=METRIC_REGISTRY,
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
app_requests_in_flight = Gauge(
    'http_requests_in_flight', 'Requests currently being served', registry=METRIC_REGISTRY,
)

api_requests_total = Counter(
    'bookstore_api_requests_total', 'Requests sent to the remote bookstore API',
    ['operation', 'outcome'], registry=METRIC_REGISTRY,
)
api_request_seconds = Histogram(
    'bookstore_api_request_duration_seconds', 'Round trip to the remote bookstore API',
    ['operation'], registry=METRIC_REGISTRY,
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def record_api_call(operation: str, outcome: str, started: float) -> None:
    """Count one remote API call and its latency. outcome is ok, error or unreachable."""
    api_requests_total.labels(operation=operation, outcome=outcome).inc()
    api_request_seconds.labels(operation=operation).observe(time.perf_counter() - started)


def _scrape_request() -> bool:
    return request.blueprint == metrics_bp.name


def setup_metrics_instrumentation(app):
    """Time and count every request except the scrapes of /metrics itself."""

    @app.before_request
    def start_request_timer():
        if _scrape_request():
            return
        g.metrics_started = time.perf_counter()
        app_requests_in_flight.inc()

    @app.after_request
    def count_request(response):
        started = g.get('metrics_started')
        if started is not None:
            blueprint = request.blueprint or 'app'
            app_request_seconds.labels(method=request.method, blueprint=blueprint).observe(
                time.perf_counter() - started)
            app_requests_total.labels(method=request.method, blueprint=blueprint,
                                      http_status=response.status_code).inc()
        return response

    @app.teardown_request
    def release_in_flight(exc):
        if g.pop('metrics_started', None) is not None:
            app_requests_in_flight.dec()


@metrics_bp.route('/metrics')
def metrics():
    if MULTIPROCESS_MODE:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
    return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)
