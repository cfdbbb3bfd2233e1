"""
Seed helpers for service and API tests.

Rows are inserted directly through the session (no service calls) with
explicit timestamps, so ordering assertions do not depend on clock
resolution.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from socialhub.config import Settings, settings
from socialhub.models import Comment, Follow, Like, Post, User
from socialhub.security import create_access_token, crypt_context

DEFAULT_PASSWORD = "password123"

BASE_TIME = datetime.now(timezone.utc).replace(microsecond=0)


def auth_headers(user: User, config: Optional[Settings] = None) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, config=config)}"}


async def make_user(db, username: str, password: str = DEFAULT_PASSWORD, **fields) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password=crypt_context(settings.bcrypt_rounds).hash(password),
        **fields,
    )
    db.add(user)
    await db.flush()
    return user


async def make_post(
    db,
    author: User,
    text: str,
    minutes_ago: int = 0,
    image: Optional[str] = None,
) -> Post:
    created = BASE_TIME - timedelta(minutes=minutes_ago)
    post = Post(author_id=author.id, text=text, image=image, created_at=created, updated_at=created)
    db.add(post)
    await db.flush()
    return post


async def make_comment(db, post: Post, author: User, text: str, minutes_ago: int = 0) -> Comment:
    comment = Comment(
        post_id=post.id,
        author_id=author.id,
        text=text,
        created_at=BASE_TIME - timedelta(minutes=minutes_ago),
    )
    db.add(comment)
    await db.flush()
    return comment


async def follow(db, follower: User, following: User) -> None:
    db.add(Follow(follower_id=follower.id, following_id=following.id))
    await db.flush()


async def like(db, post: Post, user: User) -> None:
    db.add(Like(post_id=post.id, user_id=user.id))
    await db.flush()
