"""Prometheus metric definitions for the order service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
orders_created_total = Counter("orders_created_total", "Total local orders created", ["service"])
payment_verifications_total = Counter(
    "payment_verifications_total",
    "Payment signature verifications by outcome",
    ["service", "outcome"],
)
gateway_request_seconds = Histogram(
    "gateway_request_seconds",
    "Payment gateway call latency seconds",
    ["service", "operation"],
)
gateway_errors_total = Counter("gateway_errors_total", "Failed payment gateway calls", ["service", "operation"])
store_errors_total = Counter("store_errors_total", "Failed order store operations", ["service", "operation"])


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
