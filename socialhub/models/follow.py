"""
SocialHub Backend: Follow Edge Model
======================================

What:  ORM model for the `followers` table, a directed self-referencing
       many-to-many between users.

Constraints:
    - (follower_id, following_id) unique together
    - follower_id <> following_id (CHECK); the service also rejects self-follow
      before reaching the database

Query Patterns:
    - Following-set of U:   SELECT following_id FROM followers WHERE follower_id = U
    - Followers of U:       ... WHERE following_id = U
    Both sides are indexed.
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from socialhub.database import Base
from socialhub.models.user import utcnow


class Follow(Base):
    """follower_id follows following_id (follower sees following's posts in feed)."""

    __tablename__ = "followers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    follower_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    following_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_followers_pair"),
        CheckConstraint("follower_id <> following_id", name="no_self_follow"),
    )

    def __repr__(self) -> str:
        return f"<Follow({self.follower_id} -> {self.following_id})>"
