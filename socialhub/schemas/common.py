"""
SocialHub Backend: Shared Response Envelope & Pagination Schemas
==================================================================

What:  The JSON envelope every endpoint returns, the pagination block, and the
       error body.

Envelope shapes:
    Single object:   {"success": true, "data": {...}}
    Plain list:      {"success": true, "count": 3, "data": [...]}
    Paginated list:  {"success": true, "count": 10,
                      "pagination": {"total": 42, "page": 1, "pages": 5, "limit": 10},
                      "data": [...]}
    Error:           {"success": false, "error": "Post not found", "request_id": "a1b2c3d4"}
"""

import math
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100


class Pagination(BaseModel):
    """
    Offset pagination metadata.

    `pages` is ceil(total / limit). A page past `pages` is legal and returns
    an empty list with `total` unchanged.
    """

    total: int = Field(ge=0, description="Total rows matching the filter")
    page: int = Field(ge=1, description="1-based page number that was requested")
    pages: int = Field(ge=0, description="ceil(total / limit)")
    limit: int = Field(ge=1, le=MAX_PAGE_LIMIT, description="Page size")

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, pages=math.ceil(total / limit), limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Page(BaseModel, Generic[T]):
    """A page of items plus its pagination block (service return type)."""

    items: List[T]
    pagination: Pagination


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


class PaginatedResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int
    pagination: Pagination
    data: List[T]

    @classmethod
    def from_page(cls, page: Page) -> "PaginatedResponse":
        return cls(count=len(page.items), pagination=page.pagination, data=page.items)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Fields:
        error:       Human-readable message
        details:     Extra context for 4xx errors (e.g. the conflicting field)
        request_id:  Correlation ID for tracing this error in server logs
        stack:       Traceback, only outside production
    """

    success: bool = False
    error: str
    details: Optional[dict] = None
    request_id: Optional[str] = None
    stack: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
