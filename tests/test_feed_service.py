"""
SocialHub Backend: Feed Composer Tests
========================================

Fixed seed (3 users, 5 posts), alice follows bob:

    post  author  minutes ago  liked by
    a1    alice   50           -
    b1    bob     40           -
    c1    carol   30           alice, bob
    b2    bob     20           -
    c2    carol   10           -

    alice's feed    → b2, b1, a1     (self + followed, newest first)
    alice's explore → c1, c2         (others, most liked first)
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest
import pytest_asyncio

from socialhub.exceptions import NotFoundError
from socialhub.services.feed_service import FeedService
from tests.factories import follow, like, make_comment, make_post, make_user


@pytest_asyncio.fixture
async def seed(db):
    s = SimpleNamespace(db=db, service=FeedService(db))

    s.alice = await make_user(db, "alice")
    s.bob = await make_user(db, "bob")
    s.carol = await make_user(db, "carol")
    await follow(db, s.alice, s.bob)

    s.a1 = await make_post(db, s.alice, "a1", minutes_ago=50)
    s.b1 = await make_post(db, s.bob, "b1", minutes_ago=40)
    s.c1 = await make_post(db, s.carol, "c1", minutes_ago=30)
    s.b2 = await make_post(db, s.bob, "b2", minutes_ago=20)
    s.c2 = await make_post(db, s.carol, "c2", minutes_ago=10)

    await like(db, s.c1, s.alice)
    await like(db, s.c1, s.bob)

    return s


class TestFeed:

    @pytest.mark.asyncio
    async def test_feed_order(self, seed):
        page = await seed.service.get_feed(seed.alice.id, page=1, limit=10)

        assert [p.text for p in page.items] == ["b2", "b1", "a1"]
        assert page.pagination.total == 3
        assert page.pagination.pages == 1

    @pytest.mark.asyncio
    async def test_explore_order_by_likes(self, seed):
        page = await seed.service.get_explore(seed.alice.id, page=1, limit=10)

        assert [p.text for p in page.items] == ["c1", "c2"]
        assert page.items[0].likes_count == 2
        assert page.items[0].is_liked is True
        assert page.items[1].likes_count == 0

    @pytest.mark.asyncio
    async def test_explore_ties_broken_by_recency(self, seed):
        page = await seed.service.get_explore(seed.carol.id, page=1, limit=10)

        assert [p.text for p in page.items] == ["b2", "b1", "a1"]

    @pytest.mark.asyncio
    async def test_feed_of_user_following_nobody(self, seed):
        page = await seed.service.get_feed(seed.carol.id, page=1, limit=10)

        assert [p.text for p in page.items] == ["c2", "c1"]

    @pytest.mark.asyncio
    async def test_pagination(self, seed):
        first = await seed.service.get_feed(seed.alice.id, page=1, limit=2)
        second = await seed.service.get_feed(seed.alice.id, page=2, limit=2)

        assert [p.text for p in first.items] == ["b2", "b1"]
        assert [p.text for p in second.items] == ["a1"]
        assert first.pagination.model_dump() == {"total": 3, "page": 1, "pages": 2, "limit": 2}

    @pytest.mark.asyncio
    async def test_page_beyond_last(self, seed):
        page = await seed.service.get_feed(seed.alice.id, page=5, limit=2)

        assert page.items == []
        assert page.pagination.total == 3
        assert page.pagination.pages == 2
        assert page.pagination.page == 5

    @pytest.mark.asyncio
    async def test_feed_embeds_comments_and_author(self, seed):
        await make_comment(seed.db, seed.b2, seed.alice, "nice one")

        page = await seed.service.get_feed(seed.alice.id, page=1, limit=1)

        post = page.items[0]
        assert post.author.username == "bob"
        assert post.comments_count == 1
        assert post.comments[0].author.username == "alice"

    @pytest.mark.asyncio
    async def test_user_posts(self, seed):
        page = await seed.service.get_user_posts(seed.bob.id, seed.alice.id, page=1, limit=10)

        assert [p.text for p in page.items] == ["b2", "b1"]
        assert page.pagination.total == 2

    @pytest.mark.asyncio
    async def test_user_posts_unknown_author(self, seed):
        with pytest.raises(NotFoundError):
            await seed.service.get_user_posts(uuid4(), seed.alice.id, page=1, limit=10)

    @pytest.mark.asyncio
    async def test_network_posts_unpaginated(self, seed):
        posts = await seed.service.list_network_posts(seed.alice.id)

        assert [p.text for p in posts] == ["b2", "b1", "a1"]


class TestStableOrdering:

    @pytest.mark.asyncio
    async def test_same_timestamp_pages_neither_repeat_nor_skip(self, db):
        service = FeedService(db)
        alice = await make_user(db, "alice")
        bob = await make_user(db, "bob")
        posts = [await make_post(db, bob, f"tie {i}", minutes_ago=5) for i in range(5)]

        feed_pages = [await service.get_user_posts(bob.id, alice.id, page=n, limit=2) for n in (1, 2, 3)]
        explore_pages = [await service.get_explore(alice.id, page=n, limit=2) for n in (1, 2, 3)]

        expected = [p.id for p in sorted(posts, key=lambda p: p.id.hex)]
        assert [p.id for page in feed_pages for p in page.items] == expected
        assert [p.id for page in explore_pages for p in page.items] == expected
