"""
SocialHub Backend: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures: a real in-memory SQLite database per test and
       an HTTP client bound to a fresh app. Seed helpers live in
       tests/factories.py.

Fixture Hierarchy (all function-scoped):
    database     → Database on sqlite+aiosqlite:///:memory: with tables created
    db           → AsyncSession from `database` (one unit of work per test)
    mailer       → AsyncMock standing in for the Mailer
    app          → create_app(database=..., mailer=...)
    test_client  → httpx AsyncClient over ASGITransport
"""

import os

# Settings are read at import time; override them before importing socialhub
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "development"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from socialhub.database import Database  # noqa: E402
from socialhub.services.mailer import Mailer  # noqa: E402


@pytest_asyncio.fixture
async def database():
    """A fresh in-memory database with every table created."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db(database):
    """
    Session for service-level tests.

    Services flush but never commit; the unit of work commits when the test
    body finishes, as it would at the end of a request.
    """
    async with database.session() as session:
        yield session


@pytest.fixture
def mailer():
    return AsyncMock(spec=Mailer)


@pytest.fixture
def app(database, mailer):
    from socialhub.main import create_app

    return create_app(database=database, mailer=mailer)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
