"""
SocialHub Backend: Identity & Profile Schemas
===============================================

What:  Request bodies for the auth/profile endpoints and the user
       representations returned by them.

Security:
    No response model has a `password` or reset-token field, so a User ORM
    object can be validated into any of them without leaking the hash.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from socialhub.models.user import BIO_MAX_LENGTH, USERNAME_MAX_LENGTH

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)
PASSWORD_MIN_LENGTH = 6


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please include a valid email")
    return value


def validate_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not URL_PATTERN.match(value):
        raise ValueError("Must be a valid URL")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    email: str
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalize_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalize_email(v)


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    # Length is enforced by IdentityService so the rule also holds for
    # non-HTTP callers
    new_password: str


class ProfileUpdateRequest(BaseModel):
    bio: Optional[str] = Field(default=None, max_length=BIO_MAX_LENGTH)
    profile_picture: Optional[str] = None

    @field_validator("profile_picture")
    @classmethod
    def check_picture(cls, v: Optional[str]) -> Optional[str]:
        return validate_url(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(BaseModel):
    """Compact user card used in follower lists, suggestions and search."""

    id: uuid.UUID
    username: str
    profile_picture: Optional[str] = None
    bio: Optional[str] = None

    model_config = {"from_attributes": True}


class UserSearchResult(UserSummary):
    created_at: datetime
    is_following: bool = False


class UserResponse(BaseModel):
    """The authenticated caller's own account (GET /auth/me)."""

    id: uuid.UUID
    username: str
    email: str
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
    followers_count: int = 0
    following_count: int = 0

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    """Public profile (GET /profiles/{id}); email is not exposed."""

    id: uuid.UUID
    username: str
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
    followers_count: int = 0
    following_count: int = 0
    followers: List[UserSummary] = Field(default_factory=list)
    following: List[UserSummary] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Session token plus the account it is bound to."""

    token: str
    user: UserResponse


class FollowStatus(BaseModel):
    following: bool
