"""
SocialHub Backend: Search Route Handlers
==========================================

What:  Paginated user/post search and trending topics. Bearer token required.

    GET /search/users?username=&sort_by=&sort_order=&page=&limit=
    GET /search/posts?keywords=&user_id=&has_media=&sort_by=&sort_order=&page=&limit=
    GET /search/trending
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from socialhub.dependencies import PageParams, get_current_user, get_search_service, page_params
from socialhub.models.user import User
from socialhub.schemas.common import ApiResponse, ErrorResponse, PaginatedResponse
from socialhub.schemas.post import PostResponse, TrendingTopic
from socialhub.schemas.user import UserSearchResult
from socialhub.services.search_service import SearchService

router = APIRouter(
    prefix="/search",
    tags=["Search"],
    responses={
        400: {"description": "Missing term or unknown sort field", "model": ErrorResponse},
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
    },
)


@router.get("/users", response_model=PaginatedResponse[UserSearchResult], summary="Search users by username")
async def search_users(
    username: str | None = Query(default=None, description="Case-insensitive substring"),
    sort_by: str = Query(default="username", description="username or created_at"),
    sort_order: str = Query(default="asc", description="asc or desc"),
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    search: SearchService = Depends(get_search_service),
):
    page = await search.search_users(
        user.id,
        username,
        sort_by=sort_by,
        sort_order=sort_order,
        page=params.page,
        limit=params.limit,
    )
    return PaginatedResponse[UserSearchResult].from_page(page)


@router.get("/posts", response_model=PaginatedResponse[PostResponse], summary="Search posts")
async def search_posts(
    keywords: str | None = Query(default=None, description="Case-insensitive substring of the text"),
    user_id: UUID | None = Query(default=None, description="Only posts by this author"),
    has_media: bool = Query(default=False, description="Only posts with an image"),
    sort_by: str = Query(default="created_at", description="created_at, updated_at or likes"),
    sort_order: str = Query(default="desc", description="asc or desc"),
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    search: SearchService = Depends(get_search_service),
):
    page = await search.search_posts(
        user.id,
        keywords=keywords,
        author_id=user_id,
        has_media=has_media,
        sort_by=sort_by,
        sort_order=sort_order,
        page=params.page,
        limit=params.limit,
    )
    return PaginatedResponse[PostResponse].from_page(page)


@router.get(
    "/trending",
    response_model=ApiResponse[list[TrendingTopic]],
    summary="Top keywords of the last 24 hours, weighted by likes",
)
async def trending(
    user: User = Depends(get_current_user),
    search: SearchService = Depends(get_search_service),
):
    return ApiResponse[list[TrendingTopic]](data=await search.trending_topics())
