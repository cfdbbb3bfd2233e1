"""
SocialHub Backend: Post Route Handlers
========================================

What:  Post CRUD, likes, comments, and the feed/explore listings. Every route
       requires a bearer token.

    POST   /posts                                   create
    GET    /posts                                   own + followed posts (un-paginated)
    GET    /posts/feed                              paginated feed
    GET    /posts/explore                           paginated explore
    GET    /posts/{post_id}                         one post
    PUT    /posts/{post_id}                         update (author only)
    DELETE /posts/{post_id}                         delete (author only)
    PUT    /posts/{post_id}/like                    toggle like
    POST   /posts/{post_id}/comments                add comment
    DELETE /posts/{post_id}/comments/{comment_id}   delete comment (comment author only)

/feed and /explore are declared before /{post_id} so they are not parsed as ids.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends

from socialhub.dependencies import (
    PageParams,
    get_content_service,
    get_current_user,
    get_feed_service,
    page_params,
)
from socialhub.models.user import User
from socialhub.schemas.common import (
    ApiResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
    PaginatedResponse,
)
from socialhub.schemas.post import (
    CommentCreate,
    CommentResponse,
    LikerResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
)
from socialhub.services.content_service import ContentService
from socialhub.services.feed_service import FeedService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/posts",
    tags=["Posts"],
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
)

OWNER_ONLY = {
    403: {"description": "Caller is not the author", "model": ErrorResponse},
    404: {"description": "Post not found", "model": ErrorResponse},
}


# ── Collections ───────────────────────────────────────────────────────────

@router.post("", status_code=201, response_model=ApiResponse[PostResponse], summary="Create a post")
async def create_post(
    body: PostCreate,
    user: User = Depends(get_current_user),
    content: ContentService = Depends(get_content_service),
):
    return ApiResponse[PostResponse](data=await content.create_post(user.id, body.text, body.image))


@router.get(
    "",
    response_model=ListResponse[PostResponse],
    summary="Posts by the caller and everyone they follow",
)
async def list_posts(
    user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    posts = await feed.list_network_posts(user.id)
    return ListResponse[PostResponse](count=len(posts), data=posts)


@router.get("/feed", response_model=PaginatedResponse[PostResponse], summary="Paginated feed, newest first")
async def get_feed(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    page = await feed.get_feed(user.id, params.page, params.limit)
    return PaginatedResponse[PostResponse].from_page(page)


@router.get(
    "/explore",
    response_model=PaginatedResponse[PostResponse],
    summary="Posts from outside the caller's network, most liked first",
)
async def get_explore(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    page = await feed.get_explore(user.id, params.page, params.limit)
    return PaginatedResponse[PostResponse].from_page(page)


# ── Single Post ───────────────────────────────────────────────────────────

@router.get(
    "/{post_id}",
    response_model=ApiResponse[PostResponse],
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Get one post with its comments",
)
async def get_post(
    post_id: UUID,
    user: User = Depends(get_current_user),
    content: ContentService = Depends(get_content_service),
):
    return ApiResponse[PostResponse](data=await content.get_post(post_id, user.id))


@router.put("/{post_id}", response_model=ApiResponse[PostResponse], responses=OWNER_ONLY, summary="Update a post")
async def update_post(
    post_id: UUID,
    body: PostUpdate,
    user: User = Depends(get_current_user),
    content: ContentService = Depends(get_content_service),
):
    post = await content.update_post(post_id, user.id, body.text, body.image)
    return ApiResponse[PostResponse](data=post)


@router.delete(
    "/{post_id}",
    response_model=ApiResponse[MessageResponse],
    responses=OWNER_ONLY,
    summary="Delete a post with its comments and likes",
)
async def delete_post(
    post_id: UUID,
    user: User = Depends(get_current_user),
    content: ContentService = Depends(get_content_service),
):
    await content.delete_post(post_id, user.id)
    return ApiResponse[MessageResponse](data=MessageResponse(message="Post removed"))


# ── Likes & Comments ──────────────────────────────────────────────────────

@router.put(
    "/{post_id}/like",
    response_model=ApiResponse[list[LikerResponse]],
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Like or unlike a post",
)
async def toggle_like(
    post_id: UUID,
    user: User = Depends(get_current_user),
    content: ContentService = Depends(get_content_service),
):
    return ApiResponse[list[LikerResponse]](data=await content.toggle_like(post_id, user.id))


@router.post(
    "/{post_id}/comments",
    status_code=201,
    response_model=ApiResponse[list[CommentResponse]],
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Comment on a post",
)
async def add_comment(
    post_id: UUID,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    content: ContentService = Depends(get_content_service),
):
    comments = await content.add_comment(post_id, user.id, body.text)
    return ApiResponse[list[CommentResponse]](data=comments)


@router.delete(
    "/{post_id}/comments/{comment_id}",
    response_model=ApiResponse[list[CommentResponse]],
    responses={
        403: {"description": "Caller did not write the comment", "model": ErrorResponse},
        404: {"description": "Post or comment not found", "model": ErrorResponse},
    },
    summary="Delete a comment",
)
async def delete_comment(
    post_id: UUID,
    comment_id: UUID,
    user: User = Depends(get_current_user),
    content: ContentService = Depends(get_content_service),
):
    comments = await content.delete_comment(post_id, comment_id, user.id)
    return ApiResponse[list[CommentResponse]](data=comments)
