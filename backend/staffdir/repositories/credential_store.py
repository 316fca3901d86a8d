"""
StaffDir Backend: Credential Store
===================================

What:  Durable table of (email, password hash) with unique emails.
Who:   Used by AuthService for registration and login.

Registration race:
    AuthService checks find_by_email() before insert(), but two concurrent
    registrations can both pass that check. The UNIQUE constraint on
    credentials.email decides; the losing INSERT fails at flush with an
    IntegrityError, which insert() reports as WriteOutcome.CONFLICT.

insert() commits before returning; CREATED means the row is durable.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.exceptions import DatabaseError
from staffdir.models.credential import Credential
from staffdir.repositories.outcomes import WriteOutcome, WriteResult

logger = logging.getLogger(__name__)


class CredentialStore:
    """Stateless; the session is passed per call."""

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[Credential]:
        """
        Exact, case-sensitive lookup by email.

        Raises:
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(select(Credential).where(Credential.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up credential: %s", str(e))
            raise DatabaseError(
                message="Could not look up the account. Please try again.",
                context={"operation": "credential.find_by_email", "error_type": type(e).__name__},
            )

    async def insert(self, db: AsyncSession, email: str, password_hash: str) -> WriteResult:
        credential = Credential(email=email, password_hash=password_hash)
        db.add(credential)
        try:
            # INSERT runs at flush, so a unique violation surfaces there.
            await db.flush()
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info("Duplicate registration rejected by unique constraint")
            return WriteResult(WriteOutcome.CONFLICT)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error inserting credential: %s", str(e), exc_info=True)
            return WriteResult(WriteOutcome.FAILED, error=e)

        return WriteResult(WriteOutcome.CREATED, record=credential)


credential_store = CredentialStore()
