"""
StaffDir Backend: Auth Service
===============================

What:  Registration and login workflows.
How:   Composes the schema validator, PasswordHasher, CredentialStore and
       TokenService; maps store outcomes to application exceptions.

Register:  validate → lookup email → hash → insert → Conflict on duplicate
Login:     validate → lookup email → verify hash → issue token

Unknown email and wrong password both raise InvalidCredentialsError with
the same message. Passwords never reach a log line.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidCredentialsError,
    ValidationError,
)
from staffdir.repositories.credential_store import CredentialStore, credential_store
from staffdir.repositories.outcomes import WriteOutcome
from staffdir.services.password_hasher import PasswordHasher
from staffdir.services.token_service import TokenService
from staffdir.services.validator import validate

logger = logging.getLogger(__name__)


class AuthService:
    """
    Args:
        hasher:         Password hashing strategy
        token_service:  Issues tokens for successful logins
        store:          Credential persistence (module singleton by default)
    """

    def __init__(
        self,
        hasher: PasswordHasher,
        token_service: TokenService,
        store: CredentialStore = credential_store,
    ):
        self.hasher = hasher
        self.token_service = token_service
        self.store = store

    async def register(self, db: AsyncSession, payload: Any) -> None:
        """
        Create a credential from a raw request payload.

        Raises:
            ValidationError: Payload failed the register schema (→ 400)
            ConflictError:   Email already registered, including a lost race (→ 409)
            DatabaseError:   Storage failure (→ 500)
        """
        result = validate("register", payload)
        if not result.ok:
            raise ValidationError(violations=result.violation_dicts())
        data = result.record

        if await self.store.find_by_email(db, data.email) is not None:
            raise ConflictError(message="Email already registered")

        password_hash = await self.hasher.hash(data.password)

        write = await self.store.insert(db, data.email, password_hash)
        if write.outcome is WriteOutcome.CONFLICT:
            raise ConflictError(message="Email already registered")
        if write.outcome is WriteOutcome.FAILED:
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"operation": "register", "error_type": type(write.error).__name__},
            )

        logger.info("Registered credential id=%s", write.record.id)

    async def login(self, db: AsyncSession, payload: Any) -> str:
        """
        Verify email/password and return a freshly issued bearer token.

        Raises:
            ValidationError:          Payload failed the login schema (→ 400)
            InvalidCredentialsError:  Unknown email or wrong password (→ 401)
            DatabaseError:            Storage failure (→ 500)
        """
        result = validate("login", payload)
        if not result.ok:
            raise ValidationError(violations=result.violation_dicts())
        data = result.record

        credential = await self.store.find_by_email(db, data.email)
        if credential is None:
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()

        if not await self.hasher.verify(data.password, credential.password_hash):
            logger.info("Login failed: wrong password for credential id=%s", credential.id)
            raise InvalidCredentialsError()

        logger.info("Login succeeded for credential id=%s", credential.id)
        return self.token_service.issue(credential.id)
