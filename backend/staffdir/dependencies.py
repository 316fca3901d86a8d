"""
StaffDir Backend: Request Dependencies
=======================================

What:  FastAPI dependencies shared by the route modules.

    get_auth_service       AuthService built by the app factory
    read_json_body         raw JSON payload, or None when absent/unparseable
    require_bearer_subject verifies `Authorization: Bearer <token>` and
                           returns the token subject (credential id)

Route handlers declare require_bearer_subject before touching the body, so
on protected routes authentication always runs ahead of validation.
"""

import json
import logging
from typing import Any, Optional

from fastapi import Depends, Header, Request

from staffdir.exceptions import UnauthorizedError
from staffdir.services.auth_service import AuthService
from staffdir.services.token_service import TokenService

logger = logging.getLogger(__name__)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def read_json_body(request: Request) -> Any:
    """
    Parse the request body as JSON without imposing a shape.

    Shape checks belong to the schema validator, which reports a non-object
    body as a field violation instead of FastAPI's 422.
    """
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


def require_bearer_subject(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    token_service: TokenService = Depends(get_token_service),
) -> str:
    """
    Raises:
        UnauthorizedError(token_missing): no Authorization header
        UnauthorizedError(token_invalid): wrong scheme, bad/expired token
    """
    if not authorization or not authorization.strip():
        raise UnauthorizedError(message="Access token required", code="token_missing")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError()

    verification = token_service.verify(token.strip())
    if not verification.is_valid:
        logger.info(
            "Bearer token rejected (%s) for %s %s",
            verification.status.value,
            request.method,
            request.url.path,
        )
        raise UnauthorizedError()

    request.state.subject = verification.subject
    return verification.subject
