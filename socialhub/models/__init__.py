"""ORM models. Importing this package registers every table on Base.metadata."""

from socialhub.models.follow import Follow
from socialhub.models.post import Comment, Like, Post
from socialhub.models.user import User

__all__ = ["User", "Follow", "Post", "Comment", "Like"]
