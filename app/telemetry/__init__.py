"""Prometheus instrumentation for requests, uploads and analysis runs."""

from .metrics import (
    increment_login,
    observe_request,
    record_analysis_run,
    record_model_attempt,
    record_upload,
)

__all__ = [
    "increment_login",
    "observe_request",
    "record_analysis_run",
    "record_model_attempt",
    "record_upload",
]
