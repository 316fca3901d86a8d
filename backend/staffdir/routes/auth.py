"""
StaffDir Backend: Auth Route Handlers
======================================

What:  POST /register and POST /login.
How:   Thin handlers: read the raw body, delegate to AuthService, shape the
       success response. Failures surface through the global handlers.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.database import get_db_session
from staffdir.dependencies import get_auth_service, read_json_body
from staffdir.schemas.common import ErrorResponse, MessageResponse, TokenResponse
from staffdir.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Invalid email or password", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def register(
    payload: Any = Depends(read_json_body),
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.register(db, payload)
    return MessageResponse(message="User registered successfully")


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Missing email or password", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Exchange email and password for a bearer token",
    description="The returned token is valid for one hour.",
)
async def login(
    payload: Any = Depends(read_json_body),
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    token = await auth.login(db, payload)
    return TokenResponse(token=token)
