"""
SocialHub Backend: Database Handle & Session Management
=========================================================

What:  The store handle (async engine + session factory), the declarative
       Base, and the per-request session dependency.
How:   `Database` is constructed explicitly by the application factory,
       stored on `app.state.database`, and disposed in the lifespan shutdown.
       Each request receives its own AsyncSession (one unit of work): commit
       on success, rollback on any error.
Who:   Services receive the AsyncSession at construction time via FastAPI's
       dependency injection; tests construct `Database` against in-memory SQLite.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

    SQLite (tests) uses a single shared connection (StaticPool) so that an
    in-memory database survives across sessions.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from socialhub.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
# Constraint naming convention keeps Alembic migrations deterministic.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they share one metadata object,
    which Alembic and `Database.create_all()` read.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# ── Store Handle ──────────────────────────────────────────────────────────
class Database:
    """
    Owns the connection pool and hands out sessions.

    Lifecycle:
        created once by create_app() → shared by every request →
        dispose() at application shutdown

    Attributes:
        url:              Async SQLAlchemy URL the engine connects to
        engine:           AsyncEngine managing the pool
        session_factory:  async_sessionmaker producing AsyncSession objects
    """

    def __init__(self, url: str, config: Optional[Settings] = None):
        config = config or default_settings
        self.url = url

        engine_kwargs = {"echo": config.log_level == "DEBUG"}
        if url.startswith("sqlite"):
            # One shared connection; required for ":memory:" databases
            engine_kwargs.update(
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine_kwargs.update(
                pool_size=config.db_pool_size,
                max_overflow=config.db_max_overflow,
                pool_pre_ping=config.db_pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)

        # expire_on_commit=False: ORM objects stay readable after commit,
        # which response serialization relies on
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provides one session wrapped in a unit of work.

        How it works:
            1. Creates a new session from the factory
            2. Yields it to the caller (services run their statements)
            3. On success: commits every statement of the request atomically
            4. On error: rolls back so multi-statement operations never
               leave partial writes (e.g. comments deleted, post kept)
            5. Always: closes the session (returns the connection to the pool)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def ping(self) -> bool:
        """Runs SELECT 1; used by the health check."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def create_all(self) -> None:
        """
        Creates every table registered on Base.metadata.

        Used by tests and local SQLite setups; PostgreSQL deployments run
        Alembic migrations instead.
        """
        # Register models on the metadata before create_all
        import socialhub.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Closes all pooled connections."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Reads the store handle from `request.app.state.database` so that each
    app instance (production or test) uses the Database it was built with.

    Example usage in a route:
        @router.get("/posts/{post_id}")
        async def get_post(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
