"""Create users, followers, posts, comments and post_likes

Revision ID: 001
Revises: None
Create Date: 2024-03-01 00:00:00.000000+00:00

What:  The full relational schema: accounts, the follow graph, posts, and
       their comments and likes.
How:   UUID primary keys generated by the application; ON DELETE CASCADE on
       every foreign key; unique pairs for follows and likes; a CHECK that
       forbids self-follow.

Rollback: downgrade() drops every table (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _user_fk(name: str = "user_id") -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("profile_picture", sa.String(2048), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column(
            "reset_password_token",
            sa.String(64),
            nullable=True,
            comment="SHA-256 hex digest of the emailed reset token",
        ),
        sa.Column("reset_password_expire", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_reset_password_token", "users", ["reset_password_token"])

    # ── followers ─────────────────────────────────────────────────────────
    op.create_table(
        "followers",
        sa.Column("id", sa.Uuid(), nullable=False),
        _user_fk("follower_id"),
        _user_fk("following_id"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_followers"),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_followers_pair"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_followers_no_self_follow"),
    )
    op.create_index("ix_followers_follower_id", "followers", ["follower_id"])
    op.create_index("ix_followers_following_id", "followers", ["following_id"])

    # ── posts ─────────────────────────────────────────────────────────────
    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), nullable=False),
        _user_fk(),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("image", sa.String(2048), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_posts"),
    )
    op.create_index("idx_posts_created_at", "posts", [sa.text("created_at DESC")])
    op.create_index("idx_posts_user_created", "posts", ["user_id", "created_at"])

    # ── comments ──────────────────────────────────────────────────────────
    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "post_id",
            sa.Uuid(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk(),
        sa.Column("text", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
    )
    op.create_index("idx_comments_post_created", "comments", ["post_id", "created_at"])

    # ── post_likes ────────────────────────────────────────────────────────
    op.create_table(
        "post_likes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "post_id",
            sa.Uuid(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk(),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_post_likes"),
        sa.UniqueConstraint("post_id", "user_id", name="uq_post_likes_pair"),
    )
    op.create_index("ix_post_likes_post_id", "post_likes", ["post_id"])
    op.create_index("ix_post_likes_user_id", "post_likes", ["user_id"])


def downgrade() -> None:
    op.drop_table("post_likes")
    op.drop_table("comments")
    op.drop_table("posts")
    op.drop_table("followers")
    op.drop_table("users")
