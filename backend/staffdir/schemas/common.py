"""
StaffDir Backend: Shared Response Schemas
==========================================

What:  Response models shared across routes: plain messages, login tokens,
       the error envelope and the health payload.
Why:   Declaring them on routes keeps the OpenAPI document accurate for
       error statuses as well as successes.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable confirmation")


class TokenResponse(BaseModel):
    token: str = Field(description="Bearer token, valid for one hour")


class ViolationItem(BaseModel):
    field: str = Field(description="Name of the offending field ('body' for the whole payload)")
    message: str = Field(description="Why the value was rejected")


class ErrorResponse(BaseModel):
    """
    Standardized error envelope.

    Example:
        {
            "error": "Validation failed",
            "code": "validation_error",
            "details": [{"field": "name", "message": "Name must be at least 2 characters"}],
            "request_id": "1a2b3c4d"
        }
    """

    error: str = Field(description="Stable human-readable error message")
    code: str = Field(description="Machine-readable error code")
    details: Optional[List[ViolationItem]] = Field(
        default=None, description="Per-field violations (validation errors only)"
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
