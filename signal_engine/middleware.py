# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""HTTP middleware: X-Request-ID propagation and per-route Prometheus metrics."""
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from signal_engine.metrics import HTTP_ERRORS, REQUEST_COUNT, REQUEST_LATENCY

UNMETERED_ROUTES = frozenset({"/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc"})


def route_template(request: Request) -> str:
    """Matched route path (``/api/v1/maintenance/{event_id}``), or ``unmatched`` for 404s."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        endpoint = route_template(request)
        if endpoint in UNMETERED_ROUTES:
            return response

        status = str(response.status_code)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(time.perf_counter() - start)
        if response.status_code >= 400:
            HTTP_ERRORS.labels(method=request.method, endpoint=endpoint, status=status).inc()
        return response
