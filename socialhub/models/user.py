"""
SocialHub Backend: User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table.
Who:   IdentityService (accounts, passwords, reset tokens), SocialGraphService
       (profiles), and every other service for author summaries.

Table Design:
    - UUID primary key, generated client-side so SQLite tests behave like
      PostgreSQL
    - username / email: each globally unique (separate unique constraints so
      a violation names the field)
    - password: bcrypt hash only
    - reset_password_token: SHA-256 digest of the emailed token, cleared on use
    - created_at: UTC, timezone-aware
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from socialhub.database import Base

USERNAME_MAX_LENGTH = 50
BIO_MAX_LENGTH = 500


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    An account.

    Lifecycle:
        1. Created at registration
        2. Mutated by profile edits, password changes and resets
        3. Never hard-deleted
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(USERNAME_MAX_LENGTH),
        nullable=False,
        unique=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    # bcrypt hash (60 chars); the column name mirrors the public API field
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    profile_picture: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Password Reset ────────────────────────────────────────────────────
    # Both set together by request_password_reset, both cleared on reset
    reset_password_token: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    reset_password_expire: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
