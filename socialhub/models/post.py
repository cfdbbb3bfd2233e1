"""
SocialHub Backend: Post, Comment & Like Models
================================================

What:  ORM models for `posts`, `comments` and `post_likes`.

Ownership:
    - A post is owned by its author (posts.user_id); only the author may
      update or delete it.
    - A comment is owned by its author (comments.user_id), independently of
      who owns the post.

Deletion:
    Comments and likes reference posts with ON DELETE CASCADE. ContentService
    also deletes them explicitly inside the request transaction, so SQLite
    (foreign keys off by default) behaves the same as PostgreSQL.

Indexes:
    - posts(created_at DESC): feed / explore / search ordering
    - posts(user_id, created_at): per-author listings
    - comments(post_id, created_at): comment lookups keyed by post-id set
    - post_likes(post_id): like counts
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from socialhub.database import Base
from socialhub.models.user import User, utcnow

POST_TEXT_MAX_LENGTH = 500
COMMENT_TEXT_MAX_LENGTH = 300


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    author_id: Mapped[uuid.UUID] = mapped_column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    image: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    # Many-to-one only; comments and likes are fetched in batches by post id
    author: Mapped[User] = relationship(lazy="raise")

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, author_id={self.author_id})>"


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    author: Mapped[User] = relationship(lazy="raise")

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, post_id={self.post_id})>"


class Like(Base):
    """One row per (post, user); a user likes a given post at most once."""

    __tablename__ = "post_likes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
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
        UniqueConstraint("post_id", "user_id", name="uq_post_likes_pair"),
    )


# ── Indexes ───────────────────────────────────────────────────────────────
Index("idx_posts_created_at", Post.created_at.desc())
Index("idx_posts_user_created", Post.author_id, Post.created_at)
Index("idx_comments_post_created", Comment.post_id, Comment.created_at)
