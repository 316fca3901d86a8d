"""
StaffDir Backend: Access Logging Middleware
============================================

What:  One access log line per request on the `staffdir.access` logger.
How:   Wraps call_next with a timer. After the handler has run it reads what
       the rest of the pipeline left on request.state: the bearer subject
       (set by require_bearer_subject) and the rate-limit decision (set by
       RateLimitMiddleware).

Line format:
    POST /employees 201 4.2ms rid=a1b2c3d4 client=127.0.0.1 subject=7 quota=996/1000

    subject is "-" for anonymous requests and for requests whose token was
    rejected. quota is "-" on paths the limiter skips.

Level by status class: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
Preflights are logged at DEBUG.

Never logged: request bodies (passwords), Authorization headers, tokens.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from staffdir.middleware.request_id import request_id_var

logger = logging.getLogger("staffdir.access")

SKIPPED_PATHS = {"/health"}


def _level_for(method: str, status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    if method == "OPTIONS":
        return logging.DEBUG
    return logging.INFO


def _quota(request: Request) -> str:
    decision = getattr(request.state, "rate_limit", None)
    if decision is None:
        return "-"
    return f"{decision.remaining}/{decision.limit}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
            "subject": getattr(request.state, "subject", None) or "-",
            "quota": _quota(request),
        }
        logger.log(
            _level_for(request.method, response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms rid=%(request_id)s "
            "client=%(client_ip)s subject=%(subject)s quota=%(quota)s",
            fields,
            extra=fields,
        )
        return response
