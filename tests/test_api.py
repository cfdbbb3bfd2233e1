"""
SocialHub Backend: HTTP API Tests
===================================

End-to-end through create_app(): routing, auth, envelopes and error mapping.

What we test:
    ✅ Register / login / me with the {success, data} envelope
    ✅ Error envelope {success: false, error, request_id} for 400 / 401 / 403 / 404
    ✅ Malformed ids and bodies are 400, not 422
    ✅ Paginated listings carry count + pagination
    ✅ Forgot-password answers identically for unknown emails
    ✅ X-Request-ID echo, rate limiting (429) and the catch-all 500
    ✅ Settings passed to create_app() reach services and token signing
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from socialhub.config import Settings
from socialhub.main import create_app
from tests.factories import DEFAULT_PASSWORD, auth_headers, follow, make_post, make_user


async def seed_users(database, *names):
    async with database.session() as s:
        return [await make_user(s, name) for name in names]


class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_register(self, test_client):
        response = await test_client.post(
            "/auth/register",
            json={"username": "  alice ", "email": "Alice@Example.com", "password": "secret1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["token"]
        assert body["data"]["user"]["username"] == "alice"
        assert body["data"]["user"]["email"] == "alice@example.com"
        assert "password" not in body["data"]["user"]

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, test_client, database):
        await seed_users(database, "alice")

        response = await test_client.post(
            "/auth/register",
            json={"username": "other", "email": "alice@example.com", "password": "secret1"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Email already in use"
        assert body["details"] == {"field": "email"}

    @pytest.mark.asyncio
    async def test_register_invalid_body_is_400(self, test_client):
        response = await test_client.post(
            "/auth/register",
            json={"username": "bob", "email": "not-an-email", "password": "x"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_login(self, test_client, database):
        await seed_users(database, "alice")

        ok = await test_client.post(
            "/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD}
        )
        bad = await test_client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "wrong-password"}
        )
        unknown = await test_client.post(
            "/auth/login", json={"email": "ghost@example.com", "password": DEFAULT_PASSWORD}
        )

        assert ok.status_code == 200
        assert ok.json()["data"]["user"]["username"] == "alice"
        assert bad.status_code == unknown.status_code == 401
        assert bad.json()["error"] == unknown.json()["error"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_me_requires_token(self, test_client):
        response = await test_client.get("/auth/me")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_me_rejects_garbage_token(self, test_client):
        response = await test_client.get("/auth/me", headers={"Authorization": "Bearer not.a.jwt"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_with_counts(self, test_client, database):
        async with database.session() as s:
            alice = await make_user(s, "alice")
            bob = await make_user(s, "bob")
            await follow(s, bob, alice)

        response = await test_client.get("/auth/me", headers=auth_headers(alice))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["followers_count"] == 1
        assert data["following_count"] == 0

    @pytest.mark.asyncio
    async def test_forgot_password_is_uniform(self, test_client, database, mailer):
        await seed_users(database, "alice")

        known = await test_client.post("/auth/forgot-password", json={"email": "alice@example.com"})
        unknown = await test_client.post("/auth/forgot-password", json={"email": "ghost@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        mailer.send_password_reset.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reset_with_bad_token(self, test_client):
        response = await test_client.put(
            "/auth/reset-password/deadbeef", json={"password": "new-secret"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid or expired token"


class TestPostRoutes:

    @pytest.mark.asyncio
    async def test_create_and_fetch(self, test_client, database):
        (alice,) = await seed_users(database, "alice")
        headers = auth_headers(alice)

        created = await test_client.post("/posts", json={"text": "hello"}, headers=headers)
        post_id = created.json()["data"]["id"]
        fetched = await test_client.get(f"/posts/{post_id}", headers=headers)

        assert created.status_code == 201
        assert fetched.status_code == 200
        assert fetched.json()["data"]["text"] == "hello"
        assert fetched.json()["data"]["author"]["username"] == "alice"

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, test_client, database):
        (alice,) = await seed_users(database, "alice")

        response = await test_client.post("/posts", json={"text": "   "}, headers=auth_headers(alice))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_auth(self, test_client):
        response = await test_client.post("/posts", json={"text": "anonymous"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_and_delete_are_owner_only(self, test_client, database):
        async with database.session() as s:
            alice = await make_user(s, "alice")
            mallory = await make_user(s, "mallory")
            post = await make_post(s, alice, "mine")

        update = await test_client.put(
            f"/posts/{post.id}", json={"text": "hijacked"}, headers=auth_headers(mallory)
        )
        delete = await test_client.delete(f"/posts/{post.id}", headers=auth_headers(mallory))

        assert update.status_code == 403
        assert delete.status_code == 403
        assert update.json()["error"] == "Not authorized to update this post"

        own_delete = await test_client.delete(f"/posts/{post.id}", headers=auth_headers(alice))
        gone = await test_client.get(f"/posts/{post.id}", headers=auth_headers(alice))

        assert own_delete.json()["data"]["message"] == "Post removed"
        assert gone.status_code == 404
        assert gone.json()["error"] == "Post not found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, test_client, database):
        (alice,) = await seed_users(database, "alice")

        response = await test_client.get("/posts/not-a-uuid", headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_like_and_comment(self, test_client, database):
        async with database.session() as s:
            alice = await make_user(s, "alice")
            bob = await make_user(s, "bob")
            post = await make_post(s, alice, "engage")

        liked = await test_client.put(f"/posts/{post.id}/like", headers=auth_headers(bob))
        commented = await test_client.post(
            f"/posts/{post.id}/comments", json={"text": "nice"}, headers=auth_headers(bob)
        )

        assert liked.json()["data"] == [{"id": str(bob.id), "username": "bob"}]
        assert commented.status_code == 201
        assert commented.json()["data"][0]["text"] == "nice"

    @pytest.mark.asyncio
    async def test_feed_envelope(self, test_client, database):
        async with database.session() as s:
            alice = await make_user(s, "alice")
            for i in range(3):
                await make_post(s, alice, f"post {i}", minutes_ago=i)

        response = await test_client.get("/posts/feed?page=1&limit=2", headers=auth_headers(alice))

        body = response.json()
        assert response.status_code == 200
        assert body["count"] == 2
        assert body["pagination"] == {"total": 3, "page": 1, "pages": 2, "limit": 2}
        assert [p["text"] for p in body["data"]] == ["post 0", "post 1"]

    @pytest.mark.asyncio
    async def test_limit_out_of_range(self, test_client, database):
        (alice,) = await seed_users(database, "alice")

        response = await test_client.get("/posts/feed?limit=500", headers=auth_headers(alice))

        assert response.status_code == 400


class TestProfileAndSearchRoutes:

    @pytest.mark.asyncio
    async def test_follow_and_profile(self, test_client, database):
        alice, bob = await seed_users(database, "alice", "bob")

        followed = await test_client.put(f"/profiles/{bob.id}/follow", headers=auth_headers(alice))
        profile = await test_client.get(f"/profiles/{bob.id}", headers=auth_headers(alice))

        assert followed.status_code == 200
        assert profile.json()["data"]["followers_count"] == 1
        assert "email" not in profile.json()["data"]

    @pytest.mark.asyncio
    async def test_unknown_profile(self, test_client, database):
        (alice,) = await seed_users(database, "alice")

        response = await test_client.get(
            "/profiles/00000000-0000-0000-0000-000000000000", headers=auth_headers(alice)
        )

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    @pytest.mark.asyncio
    async def test_user_search(self, test_client, database):
        alice, _, _ = await seed_users(database, "alice", "Bobby", "bob")

        response = await test_client.get(
            "/search/users?username=BOB", headers=auth_headers(alice)
        )

        body = response.json()
        assert response.status_code == 200
        assert [u["username"] for u in body["data"]] == ["Bobby", "bob"]
        assert body["pagination"]["total"] == 2


class TestPlatform:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_unknown_route_envelope(self, test_client):
        response = await test_client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_rate_limit(self, database, mailer):
        config = Settings(rate_limit_requests=10, rate_limit_window=60)
        app = create_app(config=config, database=database, mailer=mailer)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [(await client.get("/auth/me")).status_code for _ in range(11)]
            limited = await client.get("/auth/me")
            health = await client.get("/health")

        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429
        assert limited.json()["success"] is False
        assert "Retry-After" in limited.headers
        assert health.status_code == 200

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self, app):
        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaboom")

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/boom")

        body = response.json()
        assert response.status_code == 500
        assert body["success"] is False
        assert body["error"] == "Server error"
        assert "RuntimeError: kaboom" in body["stack"]
        assert body["request_id"]


@pytest.fixture
def deployment():
    return Settings(
        suggestions_limit=1,
        frontend_url="https://injected.example",
        jwt_secret="injected-deployment-secret",
        password_min_length=10,
    )


@pytest_asyncio.fixture
async def client(deployment, database, mailer):
    app = create_app(config=deployment, database=database, mailer=mailer)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestInjectedSettings:

    @pytest.mark.asyncio
    async def test_suggestion_limit(self, client, database, deployment):
        alice, *_ = await seed_users(database, "alice", "bob", "carol", "dave")

        response = await client.get("/profiles/suggestions", headers=auth_headers(alice, deployment))

        assert response.status_code == 200
        assert response.json()["count"] == 1

    @pytest.mark.asyncio
    async def test_reset_link_uses_frontend_url(self, client, database, mailer):
        await seed_users(database, "alice")

        await client.post("/auth/forgot-password", json={"email": "alice@example.com"})

        _, reset_url = mailer.send_password_reset.await_args.args
        assert reset_url.startswith("https://injected.example/reset-password/")

    @pytest.mark.asyncio
    async def test_tokens_use_injected_secret(self, client, database):
        (alice,) = await seed_users(database, "alice")

        foreign = await client.get("/auth/me", headers=auth_headers(alice))
        login = await client.post(
            "/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD}
        )
        own = await client.get(
            "/auth/me", headers={"Authorization": f"Bearer {login.json()['data']['token']}"}
        )

        assert foreign.status_code == 401
        assert own.status_code == 200

    @pytest.mark.asyncio
    async def test_password_rule_uses_injected_minimum(self, client, database, deployment):
        (alice,) = await seed_users(database, "alice")

        response = await client.put(
            "/auth/change-password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "short-pw"},
            headers=auth_headers(alice, deployment),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Password must be at least 10 characters"
