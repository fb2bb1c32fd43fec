"""Telemetry middleware for request instrumentation."""

from __future__ import annotations

import time
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.telemetry import observe_request


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Collect request count and latency for Prometheus."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            observe_request(
                request.method,
                resolve_route(request),
                500,
                time.perf_counter() - start_time,
            )
            raise

        observe_request(
            request.method,
            resolve_route(request),
            response.status_code,
            time.perf_counter() - start_time,
        )
        return response


def resolve_route(request: Request) -> str:
    """Return the matched route template, so ids do not explode label cardinality.

    The router stores the match in the scope, which is only populated once the
    request has been dispatched.
    """

    scope_route: Any = request.scope.get("route")
    if scope_route is not None:
        path = getattr(scope_route, "path", None)
        if path:
            return path

    if request.url.path.startswith("/uploads/"):
        return "/uploads"
    return request.url.path


__all__ = ["TelemetryMiddleware", "resolve_route"]
