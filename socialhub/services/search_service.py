"""
SocialHub Backend: Search Service
===================================

What:  Substring search over usernames and post text, and trending topics.
Who:   The /search routes and GET /profiles/search.

Matching:
    Case-insensitive substring: lower(column) LIKE '%' || lower(term) || '%'
    with LIKE wildcards in the term escaped, so "50%" matches literally.

Sorting:
    users → username | created_at
    posts → created_at | updated_at | likes (computed like count)
    sort_order → asc | desc
"""

import logging
from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.config import Settings, settings as default_settings
from socialhub.exceptions import ValidationError, database_errors
from socialhub.models.post import Post
from socialhub.models.user import User, utcnow
from socialhub.schemas.common import Page, Pagination
from socialhub.schemas.post import PostResponse, TrendingTopic
from socialhub.schemas.user import UserSearchResult, UserSummary
from socialhub.services.content_service import ContentService, like_count_column
from socialhub.services.social_graph_service import SocialGraphService
from socialhub.services.trending import rank_trending_topics

logger = logging.getLogger(__name__)

USER_SORT_FIELDS = {"username": User.username, "created_at": User.created_at}
POST_SORT_FIELDS = {"created_at": Post.created_at, "updated_at": Post.updated_at}
SORT_ORDERS = {"asc", "desc"}


def contains_ci(column, term: str):
    return func.lower(column).contains(term.lower(), autoescape=True)


def _ordered(column, sort_order: str):
    return column.desc() if sort_order == "desc" else column.asc()


def _check_sort_order(sort_order: str) -> str:
    if sort_order not in SORT_ORDERS:
        raise ValidationError(message="sort_order must be 'asc' or 'desc'", field="sort_order")
    return sort_order


class SearchService:
    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings
        self.graph = SocialGraphService(db, config=self.config)
        self.content = ContentService(db)

    # ── Users ─────────────────────────────────────────────────────────────

    async def search_users(
        self,
        caller_id: UUID,
        term: Optional[str],
        sort_by: str = "username",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 10,
    ) -> Page[UserSearchResult]:
        """
        Paginated username search with the caller's follow status per result.

        Raises:
            ValidationError: empty term, or unknown sort_by / sort_order
        """
        term = (term or "").strip()
        if not term:
            raise ValidationError(message="Please provide a search term", field="username")
        if sort_by not in USER_SORT_FIELDS:
            raise ValidationError(
                message=f"sort_by must be one of: {', '.join(USER_SORT_FIELDS)}",
                field="sort_by",
            )
        _check_sort_order(sort_order)

        criterion = contains_ci(User.username, term)
        with database_errors("Could not search users"):
            total = await self.db.scalar(select(func.count()).select_from(User).where(criterion))
            pagination = Pagination.build(total or 0, page, limit)
            users = (
                await self.db.scalars(
                    select(User)
                    .where(criterion)
                    .order_by(_ordered(USER_SORT_FIELDS[sort_by], sort_order), User.id)
                    .offset(pagination.offset)
                    .limit(limit)
                )
            ).all()
            followed = await self.graph.following_ids(caller_id, among=[u.id for u in users])

        items = []
        for user in users:
            item = UserSearchResult.model_validate(user)
            item.is_following = user.id in followed
            items.append(item)
        return Page[UserSearchResult](items=items, pagination=pagination)

    async def quick_search_users(self, term: Optional[str]) -> List[UserSummary]:
        """Un-paginated username search ordered by username."""
        term = (term or "").strip()
        if not term:
            raise ValidationError(
                message="Please provide a username to search for", field="username"
            )
        with database_errors("Could not search users"):
            users = (
                await self.db.scalars(
                    select(User).where(contains_ci(User.username, term)).order_by(User.username)
                )
            ).all()
        return [UserSummary.model_validate(u) for u in users]

    # ── Posts ─────────────────────────────────────────────────────────────

    async def search_posts(
        self,
        viewer_id: UUID,
        keywords: Optional[str] = None,
        author_id: Optional[UUID] = None,
        has_media: bool = False,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> Page[PostResponse]:
        """
        Paginated post search. Every filter is optional; with none, all posts
        match.

        Raises:
            ValidationError: unknown sort_by / sort_order
        """
        _check_sort_order(sort_order)
        if sort_by == "likes":
            sort_column = like_count_column()
        elif sort_by in POST_SORT_FIELDS:
            sort_column = POST_SORT_FIELDS[sort_by]
        else:
            raise ValidationError(
                message="sort_by must be one of: created_at, updated_at, likes",
                field="sort_by",
            )

        conditions = []
        keywords = (keywords or "").strip()
        if keywords:
            conditions.append(contains_ci(Post.text, keywords))
        if author_id is not None:
            conditions.append(Post.author_id == author_id)
        if has_media:
            conditions.append(and_(Post.image.is_not(None), Post.image != ""))

        with database_errors("Could not search posts"):
            return await self.content.list_posts_page(
                and_(true(), *conditions),
                order_by=(_ordered(sort_column, sort_order), Post.created_at.desc(), Post.id),
                viewer_id=viewer_id,
                page=page,
                limit=limit,
            )

    # ── Trending ──────────────────────────────────────────────────────────

    async def trending_topics(self, limit: Optional[int] = None) -> List[TrendingTopic]:
        """Top keywords of posts created within the trending window."""
        since = utcnow() - timedelta(hours=self.config.trending_window_hours)
        with database_errors("Could not compute trending topics"):
            result = await self.db.execute(
                select(Post.text, like_count_column()).where(Post.created_at >= since)
            )
            snapshot = [(text, likes) for text, likes in result]

        return rank_trending_topics(snapshot, limit=limit or self.config.trending_limit)
