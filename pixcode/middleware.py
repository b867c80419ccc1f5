"""Custom FastAPI middlewares for observability."""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .monitoring import observe_request

logger = logging.getLogger("pixcode.http")


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return route.path if route else request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log request latency and status codes; record them as metrics."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:  # type: ignore[override]
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            route_path = _route_path(request)
            logger.exception(
                "request failed",
                extra={"method": request.method, "path": route_path, "duration_ms": round(duration_ms, 2)},
            )
            observe_request(request.method, route_path, 500, duration_ms)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        route_path = _route_path(request)
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            "request completed",
            extra={
                "method": request.method,
                "path": route_path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        observe_request(request.method, route_path, response.status_code, duration_ms)
        return response
