"""
SocialHub Backend: Social Graph Service
=========================================

What:  The directed follow graph between users: toggling edges, listing both
       sides, suggestions, the public profile view, and following-set lookups
       that FeedService and SearchService scope their queries with.

Query Patterns:
    following-set of U  = SELECT following_id FROM followers WHERE follower_id = U
    followers list      = users JOIN followers ON follower_id  WHERE following_id = U
    following list      = users JOIN followers ON following_id WHERE follower_id = U
    suggestions         = users WHERE id <> U AND id NOT IN following-set(U)
                          ORDER BY random() LIMIT 5
"""

import logging
from typing import Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.config import Settings, settings as default_settings
from socialhub.exceptions import ConflictError, NotFoundError, ValidationError, database_errors
from socialhub.models.follow import Follow
from socialhub.models.user import User
from socialhub.schemas.common import Page, Pagination
from socialhub.schemas.user import FollowStatus, ProfileResponse, UserSummary

logger = logging.getLogger(__name__)


class SocialGraphService:
    """Follow edges and profile views. Constructed per request."""

    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings

    # ── Following-Set Lookups ─────────────────────────────────────────────

    def following_ids_subquery(self, user_id: UUID) -> Select:
        """SELECT of the ids `user_id` follows, for use inside IN / NOT IN."""
        return select(Follow.following_id).where(Follow.follower_id == user_id)

    async def following_ids(
        self,
        user_id: UUID,
        among: Optional[Iterable[UUID]] = None,
    ) -> Set[UUID]:
        """
        Ids that `user_id` follows.

        With `among`, only membership of those ids is checked (one query for
        a whole result page). An empty `among` returns without querying.
        """
        stmt = self.following_ids_subquery(user_id)
        if among is not None:
            among = list(among)
            if not among:
                return set()
            stmt = stmt.where(Follow.following_id.in_(among))

        with database_errors("Could not load followed users", user_id=str(user_id)):
            result = await self.db.scalars(stmt)
        return set(result.all())

    # ── Follow / Unfollow ─────────────────────────────────────────────────

    async def toggle_follow(self, follower_id: UUID, target_id: UUID) -> FollowStatus:
        """
        Follows `target_id` if not yet followed, otherwise unfollows.

        Raises:
            ValidationError: follower and target are the same user
            NotFoundError:   target does not exist
            ConflictError:   a concurrent follow inserted the same edge first
        """
        if follower_id == target_id:
            raise ValidationError(message="You cannot follow yourself", field="id")

        with database_errors("Could not update follow status", target_id=str(target_id)):
            await self._require_user(target_id)

            edge = await self.db.scalar(
                select(Follow).where(
                    Follow.follower_id == follower_id,
                    Follow.following_id == target_id,
                )
            )
            if edge is not None:
                await self.db.delete(edge)
                await self.db.flush()
                logger.info("User %s unfollowed %s", follower_id, target_id)
                return FollowStatus(following=False)

            self.db.add(Follow(follower_id=follower_id, following_id=target_id))
            try:
                await self.db.flush()
            except IntegrityError:
                raise ConflictError(message="Already following this user")

        logger.info("User %s followed %s", follower_id, target_id)
        return FollowStatus(following=True)

    # ── Listings ──────────────────────────────────────────────────────────

    async def list_followers(self, user_id: UUID, page: int, limit: int) -> Page[UserSummary]:
        """Users following `user_id`, ordered by username."""
        return await self._list_edges(
            user_id,
            match=Follow.following_id,
            join=Follow.follower_id,
            page=page,
            limit=limit,
        )

    async def list_following(self, user_id: UUID, page: int, limit: int) -> Page[UserSummary]:
        """Users `user_id` follows, ordered by username."""
        return await self._list_edges(
            user_id,
            match=Follow.follower_id,
            join=Follow.following_id,
            page=page,
            limit=limit,
        )

    async def suggest_users(self, user_id: UUID, limit: Optional[int] = None) -> List[UserSummary]:
        """Random users that are neither `user_id` nor already followed."""
        limit = limit or self.config.suggestions_limit
        stmt = (
            select(User)
            .where(
                User.id != user_id,
                User.id.not_in(self.following_ids_subquery(user_id)),
            )
            .order_by(func.random())
            .limit(limit)
        )
        with database_errors("Could not load suggestions", user_id=str(user_id)):
            users = (await self.db.scalars(stmt)).all()
        return [UserSummary.model_validate(u) for u in users]

    async def get_profile(self, user_id: UUID) -> ProfileResponse:
        """Public profile with both sides of the graph embedded."""
        with database_errors("Could not load the profile", user_id=str(user_id)):
            user = await self._require_user(user_id)
            followers = await self._edge_users(Follow.following_id, Follow.follower_id, user_id)
            following = await self._edge_users(Follow.follower_id, Follow.following_id, user_id)

        profile = ProfileResponse.model_validate(user)
        profile.followers = [UserSummary.model_validate(u) for u in followers]
        profile.following = [UserSummary.model_validate(u) for u in following]
        profile.followers_count = len(followers)
        profile.following_count = len(following)
        return profile

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _require_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def _edge_users(self, match, join, user_id: UUID) -> List[User]:
        stmt = (
            select(User)
            .join(Follow, join == User.id)
            .where(match == user_id)
            .order_by(User.username)
        )
        return list((await self.db.scalars(stmt)).all())

    async def _list_edges(self, user_id: UUID, match, join, page: int, limit: int) -> Page[UserSummary]:
        criterion = match == user_id

        with database_errors("Could not load the user list", user_id=str(user_id)):
            await self._require_user(user_id)
            total = await self.db.scalar(
                select(func.count()).select_from(Follow).where(criterion)
            )
            pagination = Pagination.build(total or 0, page, limit)
            users = (
                await self.db.scalars(
                    select(User)
                    .join(Follow, join == User.id)
                    .where(criterion)
                    .order_by(User.username)
                    .offset(pagination.offset)
                    .limit(limit)
                )
            ).all()

        return Page[UserSummary](
            items=[UserSummary.model_validate(u) for u in users],
            pagination=pagination,
        )
