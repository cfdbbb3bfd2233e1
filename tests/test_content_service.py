"""
SocialHub Backend: Content Service Tests
==========================================

What we test:
    ✅ Create / get / update with engagement assembly
    ✅ Only the author may update or delete a post (403)
    ✅ Delete removes comments and likes; the post is gone afterwards
    ✅ Like toggling: one row per user, never negative
    ✅ Comments: newest first on mutation, chronological in post views
    ✅ Comment deletion is owned by the comment author, not the post author
    ✅ Assembly of an empty page issues no query
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from socialhub.exceptions import ForbiddenError, NotFoundError
from socialhub.models import Comment, Like
from socialhub.services.content_service import ContentService
from tests.factories import like, make_comment, make_post, make_user


class ContentTestBase:

    @pytest.fixture(autouse=True)
    def _service(self, db):
        self.db = db
        self.service = ContentService(db)

    async def count(self, model, **where):
        stmt = select(func.count()).select_from(model)
        for column, value in where.items():
            stmt = stmt.where(getattr(model, column) == value)
        return await self.db.scalar(stmt)


class TestPosts(ContentTestBase):

    @pytest.mark.asyncio
    async def test_create_and_get(self):
        alice = await make_user(self.db, "alice")

        created = await self.service.create_post(alice.id, "hello world", "https://img.example.com/1.png")
        fetched = await self.service.get_post(created.id, viewer_id=alice.id)

        assert fetched.text == "hello world"
        assert fetched.image == "https://img.example.com/1.png"
        assert fetched.author.username == "alice"
        assert fetched.likes_count == 0
        assert fetched.comments == []
        assert fetched.is_liked is False

    @pytest.mark.asyncio
    async def test_get_missing_post(self):
        alice = await make_user(self.db, "alice")
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_post(uuid4(), viewer_id=alice.id)
        assert exc_info.value.message == "Post not found"

    @pytest.mark.asyncio
    async def test_update_by_author(self):
        alice = await make_user(self.db, "alice")
        post = await make_post(self.db, alice, "draft", minutes_ago=5)

        updated = await self.service.update_post(post.id, alice.id, "final", None)

        assert updated.text == "final"
        assert updated.updated_at > updated.created_at

    @pytest.mark.asyncio
    async def test_update_by_other_user_is_forbidden(self):
        alice = await make_user(self.db, "alice")
        mallory = await make_user(self.db, "mallory")
        post = await make_post(self.db, alice, "mine")

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.update_post(post.id, mallory.id, "hijacked")

        assert exc_info.value.status_code == 403
        assert (await self.service.get_post(post.id, alice.id)).text == "mine"

    @pytest.mark.asyncio
    async def test_delete_by_other_user_is_forbidden(self):
        alice = await make_user(self.db, "alice")
        mallory = await make_user(self.db, "mallory")
        post = await make_post(self.db, alice, "mine")

        with pytest.raises(ForbiddenError):
            await self.service.delete_post(post.id, mallory.id)

    @pytest.mark.asyncio
    async def test_delete_cascades_to_comments_and_likes(self):
        alice = await make_user(self.db, "alice")
        bob = await make_user(self.db, "bob")
        post = await make_post(self.db, alice, "short lived")
        other = await make_post(self.db, bob, "stays")
        await make_comment(self.db, post, bob, "nice")
        await make_comment(self.db, other, alice, "also nice")
        await like(self.db, post, bob)
        await like(self.db, other, alice)

        await self.service.delete_post(post.id, alice.id)

        with pytest.raises(NotFoundError):
            await self.service.get_post(post.id, alice.id)
        assert await self.count(Comment, post_id=post.id) == 0
        assert await self.count(Like, post_id=post.id) == 0
        assert await self.count(Comment, post_id=other.id) == 1
        assert await self.count(Like, post_id=other.id) == 1


class TestLikes(ContentTestBase):

    @pytest.mark.asyncio
    async def test_like_and_unlike(self):
        alice = await make_user(self.db, "alice")
        bob = await make_user(self.db, "bob")
        post = await make_post(self.db, alice, "like me")

        likers = await self.service.toggle_like(post.id, bob.id)
        assert [(u.id, u.username) for u in likers] == [(bob.id, "bob")]
        assert (await self.service.get_post(post.id, bob.id)).is_liked is True

        likers = await self.service.toggle_like(post.id, bob.id)
        assert likers == []
        view = await self.service.get_post(post.id, bob.id)
        assert view.likes_count == 0
        assert view.is_liked is False

    @pytest.mark.asyncio
    async def test_one_row_per_user(self):
        alice = await make_user(self.db, "alice")
        bob = await make_user(self.db, "bob")
        post = await make_post(self.db, alice, "like me")

        await self.service.toggle_like(post.id, alice.id)
        await self.service.toggle_like(post.id, bob.id)
        await self.service.toggle_like(post.id, bob.id)
        await self.service.toggle_like(post.id, bob.id)

        assert await self.count(Like, post_id=post.id) == 2
        view = await self.service.get_post(post.id, alice.id)
        assert view.likes_count == 2

    @pytest.mark.asyncio
    async def test_like_missing_post(self):
        alice = await make_user(self.db, "alice")
        with pytest.raises(NotFoundError):
            await self.service.toggle_like(uuid4(), alice.id)


class TestComments(ContentTestBase):

    @pytest.mark.asyncio
    async def test_add_comment_returns_newest_first(self):
        alice = await make_user(self.db, "alice")
        bob = await make_user(self.db, "bob")
        post = await make_post(self.db, alice, "discuss")
        await make_comment(self.db, post, bob, "first", minutes_ago=10)

        comments = await self.service.add_comment(post.id, alice.id, "second")

        assert [c.text for c in comments] == ["second", "first"]
        assert comments[0].author.username == "alice"

    @pytest.mark.asyncio
    async def test_post_view_comments_are_chronological(self):
        alice = await make_user(self.db, "alice")
        post = await make_post(self.db, alice, "discuss", minutes_ago=30)
        await make_comment(self.db, post, alice, "later", minutes_ago=1)
        await make_comment(self.db, post, alice, "earlier", minutes_ago=20)

        view = await self.service.get_post(post.id, alice.id)

        assert [c.text for c in view.comments] == ["earlier", "later"]
        assert view.comments_count == 2

    @pytest.mark.asyncio
    async def test_comment_on_missing_post(self):
        alice = await make_user(self.db, "alice")
        with pytest.raises(NotFoundError):
            await self.service.add_comment(uuid4(), alice.id, "hello?")

    @pytest.mark.asyncio
    async def test_delete_own_comment(self):
        alice = await make_user(self.db, "alice")
        bob = await make_user(self.db, "bob")
        post = await make_post(self.db, alice, "discuss")
        keep = await make_comment(self.db, post, alice, "keep", minutes_ago=5)
        drop = await make_comment(self.db, post, bob, "drop")

        comments = await self.service.delete_comment(post.id, drop.id, bob.id)

        assert [c.id for c in comments] == [keep.id]

    @pytest.mark.asyncio
    async def test_post_author_cannot_delete_others_comment(self):
        alice = await make_user(self.db, "alice")
        bob = await make_user(self.db, "bob")
        post = await make_post(self.db, alice, "discuss")
        comment = await make_comment(self.db, post, bob, "bob's words")

        with pytest.raises(ForbiddenError):
            await self.service.delete_comment(post.id, comment.id, alice.id)

    @pytest.mark.asyncio
    async def test_comment_must_belong_to_post(self):
        alice = await make_user(self.db, "alice")
        post = await make_post(self.db, alice, "one")
        other = await make_post(self.db, alice, "two")
        comment = await make_comment(self.db, other, alice, "elsewhere")

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.delete_comment(post.id, comment.id, alice.id)
        assert exc_info.value.message == "Comment not found"

    @pytest.mark.asyncio
    async def test_delete_comment_on_missing_post(self):
        alice = await make_user(self.db, "alice")
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.delete_comment(uuid4(), uuid4(), alice.id)
        assert exc_info.value.message == "Post not found"


class TestAssembly:

    @pytest.mark.asyncio
    async def test_empty_page_issues_no_query(self):
        session = AsyncMock()
        service = ContentService(session)

        assert await service.assemble_posts([], viewer_id=uuid4()) == []
        session.execute.assert_not_awaited()
        session.scalars.assert_not_awaited()
