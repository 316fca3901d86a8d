"""
StaffDir Backend: CORS Middleware
==================================

What:  Starlette's CORSMiddleware with StaffDir's preflight answers.
How:   Allowed preflights are answered before routing with an empty 204 that
       keeps the headers Starlette computed. Rejected preflights (unknown
       origin, method or header) get the usual JSON error body with 400
       instead of Starlette's plain-text reason.
"""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response

from staffdir.middleware.request_id import request_id_var

# Describe Starlette's text body, not the one we send.
_BODY_HEADERS = {"content-length", "content-type"}


class PreflightCORSMiddleware(CORSMiddleware):

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in _BODY_HEADERS
        }
        if response.status_code == 200:
            return Response(status_code=204, headers=headers)

        # e.g. "Disallowed CORS origin, method"
        reason = response.body.decode("utf-8", errors="replace")
        return JSONResponse(
            status_code=400,
            content={
                "error": reason,
                "code": "cors_rejected",
                "request_id": request_id_var.get(""),
            },
            headers=headers,
        )
