"""
SocialHub Backend: Post, Comment & Like Schemas
=================================================

What:  Request bodies for content mutation and the post view shared by
       GET /posts/{id}, feed, explore, profile posts and post search.

A PostResponse is always assembled with its engagement block:
    author (id, username, profile_picture), likes_count, comments_count,
    is_liked (for the viewer), comments (each with author info)
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from socialhub.models.post import COMMENT_TEXT_MAX_LENGTH, POST_TEXT_MAX_LENGTH
from socialhub.schemas.user import validate_url


def _strip(v):
    return v.strip() if isinstance(v, str) else v


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(BaseModel):
    text: str = Field(min_length=1, max_length=POST_TEXT_MAX_LENGTH)
    image: Optional[str] = None

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("image")
    @classmethod
    def check_image(cls, v: Optional[str]) -> Optional[str]:
        return validate_url(v)


class PostUpdate(PostCreate):
    """Full replacement of text and image, as the original update did."""


class CommentCreate(BaseModel):
    text: str = Field(min_length=1, max_length=COMMENT_TEXT_MAX_LENGTH)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorSummary(BaseModel):
    id: uuid.UUID
    username: str
    profile_picture: Optional[str] = None

    model_config = {"from_attributes": True}


class CommentResponse(BaseModel):
    id: uuid.UUID
    post_id: uuid.UUID
    text: str
    created_at: datetime
    author: AuthorSummary

    model_config = {"from_attributes": True}


class LikerResponse(BaseModel):
    id: uuid.UUID
    username: str

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    id: uuid.UUID
    text: str
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False
    comments: List[CommentResponse] = Field(default_factory=list)


class TrendingTopic(BaseModel):
    keyword: str
    weight: int
