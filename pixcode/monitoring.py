"""Monitoring helpers and Prometheus metrics exporters."""
from __future__ import annotations

from typing import Final

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

_HTTP_REQUEST_TOTAL: Final = Counter(
    "pixcode_http_requests_total",
    "Total HTTP requests",
    labelnames=("method", "route", "status"),
)
_HTTP_REQUEST_LATENCY: Final = Histogram(
    "pixcode_http_request_duration_seconds",
    "Latency of HTTP requests",
    labelnames=("method", "route"),
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)
_SERVICE_ERRORS_TOTAL: Final = Counter(
    "pixcode_service_errors_total",
    "Service-level errors by code",
    labelnames=("code", "route"),
)
_PIX_CODES_TOTAL: Final = Counter(
    "pixcode_codes_generated_total",
    "PIX payloads assembled, by caller (code or payment)",
    labelnames=("kind",),
)
_PAYMENTS_CREATED_TOTAL: Final = Counter(
    "pixcode_payments_created_total",
    "PIX payment requests created",
)
_PARSE_FAILURES_TOTAL: Final = Counter(
    "pixcode_parse_failures_total",
    "PIX payloads rejected by the parser",
)


def observe_request(method: str, route: str, status_code: int, duration_ms: float) -> None:
    _HTTP_REQUEST_TOTAL.labels(method=method, route=route, status=str(status_code)).inc()
    _HTTP_REQUEST_LATENCY.labels(method=method, route=route).observe(duration_ms / 1000)


def record_service_error(code: str, route: str) -> None:
    _SERVICE_ERRORS_TOTAL.labels(code=code, route=route).inc()


def record_code_generated(kind: str) -> None:
    _PIX_CODES_TOTAL.labels(kind=kind).inc()


def record_payment_created() -> None:
    _PAYMENTS_CREATED_TOTAL.inc()


def record_parse_failure() -> None:
    _PARSE_FAILURES_TOTAL.inc()


def metrics_payload() -> tuple[bytes, str]:
    """Return Prometheus exposition payload and content type."""

    return generate_latest(), CONTENT_TYPE_LATEST
