"""Prometheus series exposed on ``/metrics``.

HTTP traffic is labelled by route template rather than raw path so lecture
and report ids do not inflate label cardinality. Analysis runs and Gemini
attempts are counted separately because they happen in background tasks,
long after the upload request has returned.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

_HTTP_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
# Transcoding plus two model round-trips routinely takes minutes.
_ANALYSIS_BUCKETS = (5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1200.0, 2400.0)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=_HTTP_BUCKETS,
)
SERVER_ERRORS = Counter(
    "app_server_errors_total",
    "Requests answered with a 5xx status",
    ("route",),
)
LOGIN_COUNTER = Counter(
    "app_logins_total",
    "Successful logins",
)
UPLOAD_BYTES = Counter(
    "app_upload_bytes_total",
    "Bytes written to upload storage, by form field",
    ("field",),
)
ANALYSIS_RUNS = Counter(
    "app_analysis_runs_total",
    "Lecture analysis runs by outcome (succeeded, mock, failed)",
    ("outcome",),
)
ANALYSIS_DURATION = Histogram(
    "app_analysis_duration_seconds",
    "Wall-clock time of a lecture analysis run",
    buckets=_ANALYSIS_BUCKETS,
)
MODEL_ATTEMPTS = Counter(
    "app_model_attempts_total",
    "Gemini model attempts by pipeline stage, model and outcome",
    ("stage", "model", "outcome"),
)


def observe_request(method: str, route: str, status_code: int, duration_seconds: float) -> None:
    route = route or "unknown"
    REQUEST_COUNT.labels(method=method or "UNKNOWN", route=route, status=str(status_code)).inc()
    REQUEST_LATENCY.labels(method=method or "UNKNOWN", route=route).observe(
        max(duration_seconds, 0.0)
    )
    if status_code >= 500:
        SERVER_ERRORS.labels(route=route).inc()


def increment_login() -> None:
    LOGIN_COUNTER.inc()


def record_upload(field: str, size: int) -> None:
    UPLOAD_BYTES.labels(field=field).inc(size)


def record_analysis_run(outcome: str, duration_seconds: float | None = None) -> None:
    """Count a finished analysis and, when known, how long it took."""

    ANALYSIS_RUNS.labels(outcome=outcome or "unknown").inc()
    if duration_seconds is not None:
        ANALYSIS_DURATION.observe(max(duration_seconds, 0.0))


def record_model_attempt(stage: str, model: str, outcome: str) -> None:
    MODEL_ATTEMPTS.labels(stage=stage or "unknown", model=model or "unknown", outcome=outcome).inc()
