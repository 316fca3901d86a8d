"""
StaffDir Backend: Token Service
================================

What:  Issues and verifies signed, time-limited bearer tokens (JWT, HS256).
How:   PyJWT signs {sub, iat, exp}; verification checks structure and
       signature first and only then compares `exp` with the injected clock.
Who:   Login issues tokens; the bearer dependency verifies them on every
       protected request.

Verification outcomes:
    VALID    signature matches and now < exp
    INVALID  missing/empty token, malformed structure, bad signature,
             wrong algorithm or missing claims
    EXPIRED  well-formed, correctly signed, now >= exp

A tampered token is always INVALID, even if its exp is in the past, because
the signature check runs before the expiry check. Tokens are stateless:
there is no revocation list, expiry is the only way a token stops working.
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import jwt

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


class TokenStatus(str, enum.Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenVerification:
    status: TokenStatus
    subject: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status is TokenStatus.VALID


class TokenService:
    """
    Stateless bearer token issuer/verifier.

    Args:
        secret:            HMAC signing key. Empty is rejected here so a
                           missing JWT_SECRET fails at startup, never per request.
        lifetime_seconds:  Token validity; expiry is exactly iat + lifetime.
        algorithm:         JWS algorithm (HS256).
        clock:             Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        secret: str,
        lifetime_seconds: int = 3600,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret")
        self._secret = secret
        self.lifetime_seconds = lifetime_seconds
        self.algorithm = algorithm
        self._clock = clock

    def issue(self, subject_id) -> str:
        issued_at = int(self._clock())
        claims = {
            "sub": str(subject_id),
            "iat": issued_at,
            "exp": issued_at + self.lifetime_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> TokenVerification:
        if not token:
            return TokenVerification(TokenStatus.INVALID)

        try:
            # exp/iat are checked below against the injected clock.
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            return TokenVerification(TokenStatus.INVALID)

        subject = claims.get("sub")
        expires_at = claims.get("exp")
        if not isinstance(subject, str) or not subject or not isinstance(expires_at, int):
            return TokenVerification(TokenStatus.INVALID)

        if self._clock() >= expires_at:
            return TokenVerification(TokenStatus.EXPIRED, subject=subject)

        return TokenVerification(TokenStatus.VALID, subject=subject)
