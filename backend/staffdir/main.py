"""
StaffDir Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() validates configuration, builds the token/auth/rate-limit
       components, registers middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn staffdir.main:app`) and the test suite.

Request Pipeline:
    ┌─────────────────────────────────────────────────────────────┐
    │  Rate Limit → Request ID → Logging → CORS                   │
    │      → Route → Bearer auth (writes) → Validation → Store    │
    │                                                             │
    │  Any failure short-circuits into exactly one error response │
    │  ValidationError→400  Unauthorized→401  NotFound→404        │
    │  Conflict→409  RateLimited→429  Database/other→500          │
    └─────────────────────────────────────────────────────────────┘

Lifecycle:
    Import:   settings validated; a missing JWT_SECRET aborts startup
    Startup:  logging configured, tables created if absent
    Shutdown: database engine disposed
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from staffdir import __version__
from staffdir.config import settings
from staffdir.database import create_schema, dispose_engine
from staffdir.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    StaffDirError,
    UnauthorizedError,
    ValidationError,
)
from staffdir.middleware.cors import PreflightCORSMiddleware
from staffdir.middleware.logging import RequestLoggingMiddleware
from staffdir.middleware.rate_limit import (
    FixedWindowRateLimiter,
    RateLimiter,
    RateLimitMiddleware,
)
from staffdir.middleware.request_id import RequestIDMiddleware, request_id_var
from staffdir.routes import auth, employees, health
from staffdir.services.auth_service import AuthService
from staffdir.services.password_hasher import PasswordHasher
from staffdir.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] staffdir.access: POST /login 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # staffdir.access already covers requests.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("StaffDir Backend %s starting up...", __version__)

    # Idempotent: existing tables and rows are left alone.
    await create_schema()

    logger.info("CORS origin: %s", settings.cors_origin)
    logger.info(
        "Rate limit: %d requests / %ds per client",
        settings.rate_limit_requests,
        settings.rate_limit_window,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("StaffDir Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    payload: Dict,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content = {**payload, "request_id": request_id_var.get("")}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _request_violations(exc: RequestValidationError) -> list:
    violations = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("path", "query", "body")]
        violations.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return violations


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

        ValidationError / RequestValidationError → 400 (with details)
        UnauthorizedError                        → 401 (WWW-Authenticate: Bearer)
        NotFoundError                            → 404
        ConflictError                            → 409
        DatabaseError                            → 500 (generic message)
        StaffDirError / Exception                → 500 (generic message)

    Response bodies never contain stack traces, query text or exception
    context; that detail goes to the server log only. 429 responses are
    produced by RateLimitMiddleware before routing.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info(
            "[%s] Validation failed on %s: %s",
            request_id_var.get(""),
            request.url.path,
            ", ".join(v["field"] for v in exc.violations),
        )
        return _error_response(400, {**exc.to_payload(), "details": exc.violations})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        wrapped = ValidationError(violations=_request_violations(exc))
        return _error_response(400, {**wrapped.to_payload(), "details": wrapped.violations})

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        return _error_response(401, exc.to_payload(), headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, exc.to_payload())

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(409, exc.to_payload())

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(
            500,
            {"error": "An internal error occurred. Please try again later.", "code": exc.code},
        )

    @app.exception_handler(StaffDirError)
    async def handle_app_error(request: Request, exc: StaffDirError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(
            500,
            {"error": "An internal error occurred. Please try again later.", "code": "server_error"},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(
            500,
            {"error": "An unexpected error occurred.", "code": "internal_server_error"},
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    token_service: Optional[TokenService] = None,
    rate_limiter: Optional[RateLimiter] = None,
    password_hasher: Optional[PasswordHasher] = None,
) -> FastAPI:
    """
    Assemble the application.

    Components default to ones built from settings; tests inject their own
    (fixed clocks, small rate limits, cheap bcrypt rounds).

    Raises:
        ValueError: JWT_SECRET missing. Deliberately fatal at startup.
    """
    if token_service is None:
        settings.validate_required()
        token_service = TokenService(
            secret=settings.jwt_secret,
            lifetime_seconds=settings.token_lifetime_seconds,
            algorithm=settings.jwt_algorithm,
        )
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter(
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window,
        )
    if password_hasher is None:
        password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    app = FastAPI(
        title="StaffDir API",
        description="Employee directory with token-protected writes.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.token_service = token_service
    app.state.rate_limiter = rate_limiter
    app.state.auth_service = AuthService(hasher=password_hasher, token_service=token_service)

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition:
    # RateLimit → RequestID → Logging → CORS → router
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
        ],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(employees.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: `staffdir`."""
    import uvicorn

    uvicorn.run(
        "staffdir.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
