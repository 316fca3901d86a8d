"""
StaffDir Backend: Credential SQLAlchemy Model
==============================================

What:  ORM model for the `credentials` table (email + salted password hash).
Who:   Read and written only by CredentialStore.

Table Design:
    - Integer primary key: becomes the `sub` claim of issued bearer tokens
    - email: UNIQUE constraint is the final arbiter for concurrent
      registrations of the same address; stored exactly as submitted
    - password_hash: bcrypt output ($2b$<cost>$<salt><digest>), never returned
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from staffdir.database import Base


class Credential(Base):
    """
    A registered login.

    Lifecycle:
        1. Created once by POST /register
        2. Read once per POST /login attempt
        3. Never updated or deleted by the API
    """

    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Internal user id, carried as the token subject",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Login email, unique and case-sensitive as stored",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt digest with embedded salt",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the credential was registered (UTC)",
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_credentials_email"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        # password_hash deliberately omitted
        return f"<Credential(id={self.id}, email='{self.email}')>"
