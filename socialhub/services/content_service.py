"""
SocialHub Backend: Content Service
====================================

What:  Posts, comments and likes: CRUD, ownership checks, and the assembly of
       post views with their engagement data.
Who:   The /posts routes directly; FeedService and SearchService for the
       paginated post listings (list_posts_page) and view assembly.

Ownership Rules:
    update_post / delete_post → caller must be the post author
    delete_comment            → caller must be the comment author (post
                                ownership grants nothing here)
    Violations raise ForbiddenError (403); missing rows raise NotFoundError.

Assembly (assemble_posts):
    For a page of posts P, three lookups keyed by the id set of P:
        1. like counts        SELECT post_id, count(*) ... GROUP BY post_id
        2. viewer's likes     SELECT post_id ... WHERE user_id = viewer
        3. comments + author  SELECT ... ORDER BY created_at
    An empty page issues none of them.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from socialhub.exceptions import ConflictError, ForbiddenError, NotFoundError, database_errors
from socialhub.models.post import Comment, Like, Post
from socialhub.models.user import User, utcnow
from socialhub.schemas.common import Page, Pagination
from socialhub.schemas.post import AuthorSummary, CommentResponse, LikerResponse, PostResponse

logger = logging.getLogger(__name__)


def like_count_column():
    """Correlated scalar subquery: number of likes on the enclosing Post row."""
    return (
        select(func.count(Like.id))
        .where(Like.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


class ContentService:
    """Business logic for posts, comments and likes. Constructed per request."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Posts ─────────────────────────────────────────────────────────────

    async def create_post(
        self,
        author_id: UUID,
        text: str,
        image: Optional[str] = None,
    ) -> PostResponse:
        with database_errors("Could not create the post", author_id=str(author_id)):
            post = Post(author_id=author_id, text=text, image=image)
            self.db.add(post)
            await self.db.flush()
            post = await self._load_post(post.id)

        logger.info("Post created: %s by %s", post.id, author_id)
        return (await self.assemble_posts([post], viewer_id=author_id))[0]

    async def get_post(self, post_id: UUID, viewer_id: UUID) -> PostResponse:
        """
        Raises:
            NotFoundError: no such post
        """
        with database_errors("Could not load the post", post_id=str(post_id)):
            post = await self._require_post(post_id)
            return (await self.assemble_posts([post], viewer_id=viewer_id))[0]

    async def update_post(
        self,
        post_id: UUID,
        caller_id: UUID,
        text: str,
        image: Optional[str] = None,
    ) -> PostResponse:
        """
        Replaces text and image of a post the caller owns.

        Raises:
            NotFoundError:  no such post
            ForbiddenError: caller is not the author
        """
        with database_errors("Could not update the post", post_id=str(post_id)):
            post = await self._require_post(post_id)
            if post.author_id != caller_id:
                raise ForbiddenError(message="Not authorized to update this post")

            post.text = text
            post.image = image
            post.updated_at = utcnow()
            await self.db.flush()
            # Reload so both timestamps come back in the driver's representation
            await self.db.refresh(post, attribute_names=["updated_at"])
            view = (await self.assemble_posts([post], viewer_id=caller_id))[0]

        logger.info("Post updated: %s", post_id)
        return view

    async def delete_post(self, post_id: UUID, caller_id: UUID) -> None:
        """
        Deletes a post the caller owns, together with its comments and likes.

        All three deletes run in the request's transaction; a failure in any
        of them rolls back the others.

        Raises:
            NotFoundError:  no such post
            ForbiddenError: caller is not the author
        """
        with database_errors("Could not delete the post", post_id=str(post_id)):
            post = await self._require_post(post_id)
            if post.author_id != caller_id:
                raise ForbiddenError(message="Not authorized to delete this post")

            await self.db.execute(delete(Comment).where(Comment.post_id == post_id))
            await self.db.execute(delete(Like).where(Like.post_id == post_id))
            await self.db.delete(post)
            await self.db.flush()

        logger.info("Post deleted: %s", post_id)

    # ── Likes ─────────────────────────────────────────────────────────────

    async def toggle_like(self, post_id: UUID, user_id: UUID) -> List[LikerResponse]:
        """
        Likes the post, or removes the like if the user already liked it.

        Returns:
            Every user who now likes the post, in the order they liked it
        """
        with database_errors("Could not update the like", post_id=str(post_id)):
            await self._require_post(post_id)

            like = await self.db.scalar(
                select(Like).where(Like.post_id == post_id, Like.user_id == user_id)
            )
            if like is not None:
                await self.db.delete(like)
                await self.db.flush()
                logger.info("Post %s unliked by %s", post_id, user_id)
            else:
                self.db.add(Like(post_id=post_id, user_id=user_id))
                try:
                    await self.db.flush()
                except IntegrityError:
                    raise ConflictError(message="Post already liked")
                logger.info("Post %s liked by %s", post_id, user_id)

            result = await self.db.execute(
                select(User.id, User.username)
                .join(Like, Like.user_id == User.id)
                .where(Like.post_id == post_id)
                .order_by(Like.created_at, User.username)
            )
            return [LikerResponse(id=row.id, username=row.username) for row in result]

    # ── Comments ──────────────────────────────────────────────────────────

    async def add_comment(self, post_id: UUID, author_id: UUID, text: str) -> List[CommentResponse]:
        """
        Returns:
            All comments of the post, newest first
        """
        with database_errors("Could not add the comment", post_id=str(post_id)):
            await self._require_post(post_id)
            self.db.add(Comment(post_id=post_id, author_id=author_id, text=text))
            await self.db.flush()
            comments = await self._post_comments(post_id)

        logger.info("Comment added to post %s by %s", post_id, author_id)
        return comments

    async def delete_comment(
        self,
        post_id: UUID,
        comment_id: UUID,
        caller_id: UUID,
    ) -> List[CommentResponse]:
        """
        Raises:
            NotFoundError:  post missing, or the comment is not on this post
            ForbiddenError: caller did not write the comment
        """
        with database_errors("Could not delete the comment", comment_id=str(comment_id)):
            await self._require_post(post_id)

            comment = await self.db.get(Comment, comment_id)
            if comment is None or comment.post_id != post_id:
                raise NotFoundError(resource="comment", resource_id=str(comment_id))
            if comment.author_id != caller_id:
                raise ForbiddenError(message="Not authorized to delete this comment")

            await self.db.delete(comment)
            await self.db.flush()
            comments = await self._post_comments(post_id)

        logger.info("Comment %s deleted from post %s", comment_id, post_id)
        return comments

    # ── Listing & Assembly ────────────────────────────────────────────────

    async def list_posts_page(
        self,
        criterion,
        order_by: Sequence,
        viewer_id: UUID,
        page: int,
        limit: int,
    ) -> Page[PostResponse]:
        """
        One page of assembled posts matching `criterion`.

        The count query and the page query share the same `criterion`
        object, so `total` always describes the rows being paged over.
        """
        total = await self.db.scalar(select(func.count()).select_from(Post).where(criterion))
        pagination = Pagination.build(total or 0, page, limit)

        result = await self.db.scalars(
            select(Post)
            .options(joinedload(Post.author))
            .where(criterion)
            .order_by(*order_by)
            .offset(pagination.offset)
            .limit(limit)
        )
        posts = list(result.all())
        return Page[PostResponse](
            items=await self.assemble_posts(posts, viewer_id=viewer_id),
            pagination=pagination,
        )

    async def list_posts(self, criterion, order_by: Sequence, viewer_id: UUID) -> List[PostResponse]:
        """Un-paginated variant of list_posts_page()."""
        result = await self.db.scalars(
            select(Post).options(joinedload(Post.author)).where(criterion).order_by(*order_by)
        )
        return await self.assemble_posts(list(result.all()), viewer_id=viewer_id)

    async def assemble_posts(self, posts: Sequence[Post], viewer_id: UUID) -> List[PostResponse]:
        """
        Builds post views (author, like count, viewer's like, comments).

        `posts` must have their author loaded. Output order follows input
        order; comments within a post are chronological.
        """
        if not posts:
            return []
        post_ids = [p.id for p in posts]

        like_rows = await self.db.execute(
            select(Like.post_id, func.count(Like.id))
            .where(Like.post_id.in_(post_ids))
            .group_by(Like.post_id)
        )
        like_counts: Dict[UUID, int] = {post_id: count for post_id, count in like_rows}

        liked = set(
            (
                await self.db.scalars(
                    select(Like.post_id).where(
                        Like.post_id.in_(post_ids),
                        Like.user_id == viewer_id,
                    )
                )
            ).all()
        )

        comments = await self.db.scalars(
            select(Comment)
            .options(joinedload(Comment.author))
            .where(Comment.post_id.in_(post_ids))
            .order_by(Comment.created_at, Comment.id)
            .execution_options(populate_existing=True)
        )
        by_post: Dict[UUID, List[CommentResponse]] = defaultdict(list)
        for comment in comments.all():
            by_post[comment.post_id].append(CommentResponse.model_validate(comment))

        return [
            PostResponse(
                id=post.id,
                text=post.text,
                image=post.image,
                created_at=post.created_at,
                updated_at=post.updated_at,
                author=AuthorSummary.model_validate(post.author),
                likes_count=like_counts.get(post.id, 0),
                comments_count=len(by_post[post.id]),
                is_liked=post.id in liked,
                comments=by_post[post.id],
            )
            for post in posts
        ]

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load_post(self, post_id: UUID) -> Optional[Post]:
        return await self.db.scalar(
            select(Post)
            .options(joinedload(Post.author))
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )

    async def _require_post(self, post_id: UUID) -> Post:
        post = await self._load_post(post_id)
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post

    async def _post_comments(self, post_id: UUID) -> List[CommentResponse]:
        result = await self.db.scalars(
            select(Comment)
            .options(joinedload(Comment.author))
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.desc(), Comment.id)
            .execution_options(populate_existing=True)
        )
        return [CommentResponse.model_validate(c) for c in result.all()]
