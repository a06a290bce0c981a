"""
Angle Backend — Request Logging Middleware
===========================================

What:  One access-log line per request: method, path, status, duration.
How:   Times the downstream call and picks the level from the status class
       (5xx ERROR, 4xx WARNING, otherwise INFO).
Who:   Applied to every request except health probes.

Bodies, query strings and cookies are not logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from angle.middleware.request_id import request_id_var

logger = logging.getLogger("angle.access")

SKIPPED_PATHS = frozenset({"/api/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each HTTP exchange.

    Typical durations:
        GET /api/health              1-5ms
        GET /api/episodes            10-50ms (database query, less when cached)
        GET /episode/{id}            10-60ms (query + shell rewrite)
        GET /api/og-image/{id}       200-2000ms (cover download + rasterizing)
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
