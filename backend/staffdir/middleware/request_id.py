"""
StaffDir Backend: Request ID Middleware
========================================

What:  Gives every request a correlation id, echoed in X-Request-ID and in
       every error body.
How:   A client-supplied X-Request-ID is reused when it is a plain token
       (letters, digits, `-`, `_`, `.`, at most 64 characters), so a
       frontend can join its own traces to ours. Anything else is replaced by
       a fresh 8-character id; the value ends up in log lines and must not
       be able to forge them.
       The id lives in a ContextVar so the access log, the exception
       handlers and the CORS preflight answer can read it without threading
       it through calls.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

HEADER = "X-Request-ID"
CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(supplied: str) -> str:
    if CLIENT_ID_PATTERN.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(HEADER, ""))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[HEADER] = rid
        return response
