"""
SocialHub Backend: FastAPI Dependencies
=========================================

What:  Request-scoped providers: the authenticated caller, service instances
       bound to the request's session, and pagination query parameters.

Authentication:
    Authorization: Bearer <jwt>
    Missing header, wrong scheme, bad signature, expired token, or a token
    whose user no longer exists → AuthError (401).
"""

from dataclasses import dataclass

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.config import Settings
from socialhub.database import get_db_session
from socialhub.exceptions import AuthError
from socialhub.models.user import User
from socialhub.schemas.common import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from socialhub.services.content_service import ContentService
from socialhub.services.feed_service import FeedService
from socialhub.services.identity_service import IdentityService
from socialhub.services.mailer import Mailer
from socialhub.services.search_service import SearchService
from socialhub.services.social_graph_service import SocialGraphService

# auto_error=False: a missing header must produce our 401 envelope, not
# FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


# ── Services ──────────────────────────────────────────────────────────────

def get_config(request: Request) -> Settings:
    """The Settings the running app was built with (create_app)."""
    return request.app.state.config


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_identity_service(
    db: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    config: Settings = Depends(get_config),
) -> IdentityService:
    return IdentityService(db, mailer=mailer, config=config)


def get_social_graph_service(
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_config),
) -> SocialGraphService:
    return SocialGraphService(db, config=config)


def get_content_service(db: AsyncSession = Depends(get_db_session)) -> ContentService:
    return ContentService(db)


def get_feed_service(
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_config),
) -> FeedService:
    return FeedService(db, config=config)


def get_search_service(
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_config),
) -> SearchService:
    return SearchService(db, config=config)


# ── Current User ──────────────────────────────────────────────────────────

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    identity: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolves the bearer token to a User or raises AuthError."""
    if credentials is None or not credentials.credentials:
        raise AuthError()
    return await identity.authenticate(credentials.credentials)


# ── Pagination ────────────────────────────────────────────────────────────

@dataclass
class PageParams:
    page: int
    limit: int


def page_params(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(
        default=DEFAULT_PAGE_LIMIT,
        ge=1,
        le=MAX_PAGE_LIMIT,
        description=f"Items per page (max {MAX_PAGE_LIMIT})",
    ),
) -> PageParams:
    return PageParams(page=page, limit=limit)
