"""
StaffDir Backend: Rate Limiting Middleware
===========================================

What:  Per-client fixed-window request limiter (1000 requests / 15 minutes).
How:   RateLimitMiddleware asks a RateLimiter whether the client may proceed.
       The in-memory FixedWindowRateLimiter is the default; a shared backend
       (e.g. Redis INCR + EXPIRE) can be dropped in behind the same interface
       without touching the pipeline.
When:  First stage of the pipeline; a rejected request never reaches routing.

Algorithm: Fixed Window Counter
    1. Each client key maps to (window_start, count)
    2. If now - window_start >= window: window_start = now, count = 0
    3. count += 1
    4. If count > limit: reject with 429, otherwise pass through

    Known imprecision: a burst straddling a window boundary can get up to
    2 x limit requests through. This is accepted for a soft throttle.

Atomicity:
    check() is synchronous with no await between reading, comparing and
    incrementing the counter, so under the single asyncio event loop no other
    request can interleave inside one client's read-modify-write.

State is process-local and lost on restart.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from staffdir.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the current window ends

    def headers(self) -> Dict[str, str]:
        """IETF draft RateLimit-* headers (as sent by express-rate-limit and slowapi)."""
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_after),
        }


class RateLimiter(ABC):
    """Decides whether a client may make another request."""

    @abstractmethod
    def check(self, client_key: str) -> RateLimitDecision:
        ...


class FixedWindowRateLimiter(RateLimiter):
    """
    In-memory fixed-window counter.

    Expired windows are swept once more than MAX_TRACKED_CLIENTS keys are held,
    at most once per window length.

    Args:
        limit:           Requests allowed per window per client
        window_seconds:  Window duration
        clock:           Monotonic time source in seconds (injectable for tests)
    """

    MAX_TRACKED_CLIENTS = 10_000

    def __init__(
        self,
        limit: int = 1000,
        window_seconds: float = 900,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._next_sweep = float("-inf")

    def check(self, client_key: str) -> RateLimitDecision:
        now = self._clock()
        window_start, count = self._windows.get(client_key, (now, 0))

        if now - window_start >= self.window_seconds:
            window_start, count = now, 0

        count += 1
        self._windows[client_key] = (window_start, count)

        if len(self._windows) > self.MAX_TRACKED_CLIENTS and now >= self._next_sweep:
            self._evict_expired(now)
            self._next_sweep = now + self.window_seconds

        reset_after = max(0, math.ceil(window_start + self.window_seconds - now))
        return RateLimitDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_after=reset_after,
        )

    def _evict_expired(self, now: float) -> None:
        """Drop clients whose window has ended; bounds memory under many unique IPs."""
        expired = [
            key for key, (start, _) in self._windows.items()
            if now - start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Evicted %d expired rate limit windows", len(expired))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies a RateLimiter to every request keyed by client address.

    Excluded paths:
        - /health: probes must always get through

    Response on rate limit:
        HTTP 429 with Retry-After and RateLimit-* headers; JSON error body.
    Allowed responses also carry the RateLimit-* headers.
    """

    EXCLUDED_PATHS = {"/health"}

    def __init__(self, app, limiter: RateLimiter, **kwargs):
        super().__init__(app, **kwargs)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a proxy this is the proxy address unless uvicorn runs with
        # --proxy-headers.
        client_key = request.client.host if request.client else "unknown"

        decision = self.limiter.check(client_key)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s: over %d requests in window",
                client_key,
                decision.limit,
            )
            exc = RateLimitExceededError(retry_after=decision.reset_after)
            return JSONResponse(
                status_code=429,
                content=exc.to_payload(),
                headers={"Retry-After": str(exc.retry_after), **decision.headers()},
            )

        request.state.rate_limit = decision
        response = await call_next(request)
        response.headers.update(decision.headers())
        return response
