"""
StaffDir Backend: Custom Exception Hierarchy
=============================================

What:  Application exceptions, one per failure kind the API reports.
How:   Each exception carries a stable user-facing message, a machine-readable
       `code` and an optional context dict. Global handlers registered in
       main.py translate them into JSON responses with the right status.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    StaffDirError (base)
    ├── ValidationError          → 400 Bad Request (itemized violations)
    ├── ConflictError            → 409 Conflict
    ├── UnauthorizedError        → 401 Unauthorized
    │   └── InvalidCredentialsError
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error

Repositories do not raise for expected write outcomes (duplicate key, missing
row); they return a WriteResult and the service layer picks the exception.
"""

from typing import Any, Dict, List, Optional


class StaffDirError(Exception):
    """
    Base exception for all StaffDir application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        code:     Machine-readable error code
        context:  Additional debug info (logged but NOT returned to client)
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        """Response body fields common to every error; never includes context."""
        return {"error": self.message, "code": self.code}


class ValidationError(StaffDirError):
    """
    Raised when a request body or path parameter fails validation.

    HTTP: 400 Bad Request

    `violations` lists every failed field, not just the first one:
        [{"field": "name", "message": "Name must be at least 2 characters"}]
    """

    code = "validation_error"

    def __init__(
        self,
        violations: Optional[List[Dict[str, str]]] = None,
        message: str = "Validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.violations = violations or []


class ConflictError(StaffDirError):
    """
    Raised when a write collides with a unique key (duplicate email).

    HTTP: 409 Conflict
    """

    code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(StaffDirError):
    """
    Raised when a protected route is called without a usable bearer token.

    HTTP: 401 Unauthorized

    `code` separates a missing header (`token_missing`) from a token that
    failed verification (`token_invalid`). Expired and tampered tokens share
    `token_invalid`; the distinction only exists inside TokenService.
    """

    code = "token_invalid"

    def __init__(
        self,
        message: str = "Invalid or expired token",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        if code:
            self.code = code


class InvalidCredentialsError(UnauthorizedError):
    """
    Raised on login with an unknown email or a wrong password.

    The message is identical for both cases so the endpoint cannot be used
    to discover which emails are registered.
    """

    code = "invalid_credentials"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid email or password", context=context)


class NotFoundError(StaffDirError):
    """
    Raised when no record exists at the requested identifier.

    HTTP: 404 Not Found
    """

    code = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(StaffDirError):
    """
    Raised when a client exceeds its fixed-window request quota.

    HTTP: 429 Too Many Requests
    """

    code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Too many requests, please try again later."
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(StaffDirError):
    """
    Raised when a storage operation fails unexpectedly.

    HTTP: 500 Internal Server Error

    The response always carries a generic message; `context` (exception
    type, operation, identifiers) is logged server-side only.
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
