"""
SocialHub Backend: Profile Route Handlers
===========================================

What:  Public profiles, the follow graph, and profile edits. Every route
       requires a bearer token.

    GET /profiles/search?username=     quick username search (un-paginated)
    GET /profiles/suggestions          users to follow
    PUT /profiles/me                   edit own bio / profile picture
    GET /profiles/{user_id}            public profile
    PUT /profiles/{user_id}/follow     follow / unfollow toggle
    GET /profiles/{user_id}/posts      the user's posts (paginated)
    GET /profiles/{user_id}/followers  paginated, by username
    GET /profiles/{user_id}/following  paginated, by username
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from socialhub.dependencies import (
    PageParams,
    get_current_user,
    get_feed_service,
    get_identity_service,
    get_search_service,
    get_social_graph_service,
    page_params,
)
from socialhub.models.user import User
from socialhub.schemas.common import ApiResponse, ErrorResponse, ListResponse, PaginatedResponse
from socialhub.schemas.post import PostResponse
from socialhub.schemas.user import (
    FollowStatus,
    ProfileResponse,
    ProfileUpdateRequest,
    UserResponse,
    UserSummary,
)
from socialhub.services.feed_service import FeedService
from socialhub.services.identity_service import IdentityService
from socialhub.services.search_service import SearchService
from socialhub.services.social_graph_service import SocialGraphService

router = APIRouter(
    prefix="/profiles",
    tags=["Profiles"],
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
)

USER_NOT_FOUND = {404: {"description": "User not found", "model": ErrorResponse}}


# ── Fixed Paths (before /{user_id}) ───────────────────────────────────────

@router.get("/search", response_model=ListResponse[UserSummary], summary="Find users by username")
async def search_profiles(
    username: str | None = Query(default=None, description="Case-insensitive substring"),
    user: User = Depends(get_current_user),
    search: SearchService = Depends(get_search_service),
):
    users = await search.quick_search_users(username)
    return ListResponse[UserSummary](count=len(users), data=users)


@router.get("/suggestions", response_model=ListResponse[UserSummary], summary="Random users not yet followed")
async def suggestions(
    user: User = Depends(get_current_user),
    graph: SocialGraphService = Depends(get_social_graph_service),
):
    users = await graph.suggest_users(user.id)
    return ListResponse[UserSummary](count=len(users), data=users)


@router.put("/me", response_model=ApiResponse[UserResponse], summary="Edit own bio and profile picture")
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
):
    profile = await identity.update_profile(user.id, bio=body.bio, profile_picture=body.profile_picture)
    return ApiResponse[UserResponse](data=profile)


# ── Per-User ──────────────────────────────────────────────────────────────

@router.get("/{user_id}", response_model=ApiResponse[ProfileResponse], responses=USER_NOT_FOUND)
async def get_profile(
    user_id: UUID,
    user: User = Depends(get_current_user),
    graph: SocialGraphService = Depends(get_social_graph_service),
):
    return ApiResponse[ProfileResponse](data=await graph.get_profile(user_id))


@router.put(
    "/{user_id}/follow",
    response_model=ApiResponse[FollowStatus],
    responses={
        400: {"description": "Cannot follow yourself", "model": ErrorResponse},
        **USER_NOT_FOUND,
    },
    summary="Follow or unfollow a user",
)
async def toggle_follow(
    user_id: UUID,
    user: User = Depends(get_current_user),
    graph: SocialGraphService = Depends(get_social_graph_service),
):
    return ApiResponse[FollowStatus](data=await graph.toggle_follow(user.id, user_id))


@router.get("/{user_id}/posts", response_model=PaginatedResponse[PostResponse], responses=USER_NOT_FOUND)
async def user_posts(
    user_id: UUID,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    page = await feed.get_user_posts(user_id, user.id, params.page, params.limit)
    return PaginatedResponse[PostResponse].from_page(page)


@router.get("/{user_id}/followers", response_model=PaginatedResponse[UserSummary], responses=USER_NOT_FOUND)
async def followers(
    user_id: UUID,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    graph: SocialGraphService = Depends(get_social_graph_service),
):
    page = await graph.list_followers(user_id, params.page, params.limit)
    return PaginatedResponse[UserSummary].from_page(page)


@router.get("/{user_id}/following", response_model=PaginatedResponse[UserSummary], responses=USER_NOT_FOUND)
async def following(
    user_id: UUID,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    graph: SocialGraphService = Depends(get_social_graph_service),
):
    page = await graph.list_following(user_id, params.page, params.limit)
    return PaginatedResponse[UserSummary].from_page(page)
