"""
StaffDir Backend: Password Hasher
==================================

What:  One-way salted password hashing with bcrypt.
How:   bcrypt.gensalt() draws a fresh random salt per call and embeds it in
       the output, so hashing the same password twice yields different
       digests. checkpw re-derives with the embedded salt and compares in
       constant time.
When:  Registration (hash) and login (verify).

Both operations are CPU-bound (~50-100ms at cost 10) and run in Starlette's
threadpool so other requests keep flowing while a hash is computed.
"""

import logging

import bcrypt
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

# bcrypt ignores everything past 72 bytes; newer releases raise instead.
BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """bcrypt hasher with a fixed work factor."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash_sync(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(plaintext), salt).decode("utf-8")

    def verify_sync(self, plaintext: str, digest: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(plaintext), digest.encode("utf-8"))
        except ValueError:
            # Not a bcrypt digest (corrupted row, foreign format).
            logger.warning("Stored password hash is not a valid bcrypt digest")
            return False

    async def hash(self, plaintext: str) -> str:
        return await run_in_threadpool(self.hash_sync, plaintext)

    async def verify(self, plaintext: str, digest: str) -> bool:
        return await run_in_threadpool(self.verify_sync, plaintext, digest)
