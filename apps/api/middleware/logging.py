from __future__ import annotations

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from apps.api.metrics import REQUEST_COUNT, REQUEST_LATENCY
from core.logging import log_event, set_request_id

logger = logging.getLogger("store.access")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = set_request_id(request.headers.get("X-Request-ID"))
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        route = request.scope.get("route")
        endpoint = route.path if route is not None else request.url.path
        REQUEST_LATENCY.labels(endpoint).observe(duration_ms)
        REQUEST_COUNT.labels(request.method, endpoint).inc()
        log_event(
            logger,
            "http.request",
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
