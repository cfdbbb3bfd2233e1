"""
SocialHub Backend: Feed Composer
==================================

What:  Post listings scoped by the social graph.

    feed     → posts by the user or anyone they follow, newest first
    explore  → posts by anyone else, most liked first, then newest
    profile  → one author's posts, newest first
    network  → same scope as feed, un-paginated (GET /posts)

Both the feed and explore scopes are a single SQL filter built around the
following-set subquery; ContentService.list_posts_page() runs the count and
the page query from that same filter object.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.config import Settings, settings as default_settings
from socialhub.exceptions import NotFoundError, database_errors
from socialhub.models.post import Post
from socialhub.models.user import User
from socialhub.schemas.common import Page
from socialhub.schemas.post import PostResponse
from socialhub.services.content_service import ContentService, like_count_column
from socialhub.services.social_graph_service import SocialGraphService

logger = logging.getLogger(__name__)

# Post.id keeps the order total across pages
NEWEST_FIRST = (Post.created_at.desc(), Post.id)


class FeedService:
    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings
        self.graph = SocialGraphService(db, config=self.config)
        self.content = ContentService(db)

    def _network_filter(self, user_id: UUID):
        """The user's own posts plus posts of everyone they follow."""
        return or_(
            Post.author_id == user_id,
            Post.author_id.in_(self.graph.following_ids_subquery(user_id)),
        )

    def _outside_network_filter(self, user_id: UUID):
        return and_(
            Post.author_id != user_id,
            Post.author_id.not_in(self.graph.following_ids_subquery(user_id)),
        )

    async def get_feed(self, user_id: UUID, page: int, limit: int) -> Page[PostResponse]:
        with database_errors("Could not load the feed", user_id=str(user_id)):
            return await self.content.list_posts_page(
                self._network_filter(user_id),
                order_by=NEWEST_FIRST,
                viewer_id=user_id,
                page=page,
                limit=limit,
            )

    async def get_explore(self, user_id: UUID, page: int, limit: int) -> Page[PostResponse]:
        with database_errors("Could not load explore posts", user_id=str(user_id)):
            return await self.content.list_posts_page(
                self._outside_network_filter(user_id),
                order_by=(like_count_column().desc(), Post.created_at.desc(), Post.id),
                viewer_id=user_id,
                page=page,
                limit=limit,
            )

    async def get_user_posts(
        self,
        author_id: UUID,
        viewer_id: UUID,
        page: int,
        limit: int,
    ) -> Page[PostResponse]:
        """
        Raises:
            NotFoundError: the author does not exist
        """
        with database_errors("Could not load the user's posts", author_id=str(author_id)):
            if await self.db.get(User, author_id) is None:
                raise NotFoundError(resource="user", resource_id=str(author_id))
            return await self.content.list_posts_page(
                Post.author_id == author_id,
                order_by=NEWEST_FIRST,
                viewer_id=viewer_id,
                page=page,
                limit=limit,
            )

    async def list_network_posts(self, user_id: UUID) -> List[PostResponse]:
        with database_errors("Could not load posts", user_id=str(user_id)):
            return await self.content.list_posts(
                self._network_filter(user_id),
                order_by=NEWEST_FIRST,
                viewer_id=user_id,
            )
