"""
FeedHub Backend — Request Logging Middleware
=============================================

What:  One access-log line per request: method, path, status, duration,
       request id, client address, and the authenticated user when known.
How:   Starlette middleware on the "feedhub.access" logger; level follows
       the status class (5xx ERROR, 4xx WARNING, else INFO).

Never logged: request bodies (passwords, uploads), query strings, and the
Authorization header. Bearer tokens must not reach the logs.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from feedhub.middleware.request_id import request_id_var

logger = logging.getLogger("feedhub.access")

# Probe and static paths that would drown the access log
QUIET_PATH_PREFIXES = ("/health", "/media/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request after the response has been produced."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PATH_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        # Plain string only: ORM rows are detached and expired by now
        user_id = getattr(request.state, "user_id", None) or "-"

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
