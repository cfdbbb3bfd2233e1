"""
SocialHub Backend: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) catch these and
       return the JSON error envelope with the matching HTTP status code.
Who:   Raised by services and the auth dependency; caught by global handlers.

Exception Hierarchy:
    SocialHubError (base)
    ├── ValidationError          → 400 Bad Request
    │   └── InvalidTokenError    → 400 Bad Request (reset token unknown/expired)
    ├── ConflictError            → 400 Bad Request (duplicate username/email)
    ├── AuthError                → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden (authenticated, not the owner)
    ├── NotFoundError            → 404 Not Found
    └── DatabaseError            → 500 Internal Server Error

Every failure is terminal for its request; nothing here is retried.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class SocialHubError(Exception):
    """
    Base exception for all SocialHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SocialHubError):
    """
    Raised when client input fails a business rule.

    When:    Self-follow, short new password, unknown sort field, missing
             search term.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidTokenError(ValidationError):
    """
    Raised when a password reset token is unknown, expired or already used.

    The three cases share one message so a caller cannot tell them apart.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid or expired token", context=context)


class ConflictError(SocialHubError):
    """
    Raised when a create would violate a uniqueness rule.

    When:    Registration with an email or username that already exists, or a
             concurrent duplicate like/follow rejected by a unique constraint.
    HTTP:    400 Bad Request

    Attributes:
        field:  Name of the conflicting field ("email", "username"), or None
                when the conflict is a composite pair.

    Example response:
        {"success": false, "error": "Email already in use", "details": {"field": "email"}}
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthError(SocialHubError):
    """
    Raised when the caller cannot be identified.

    When:    Wrong credentials, missing/malformed/expired bearer token, token
             for a user that no longer exists, wrong current password.
    HTTP:    401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(SocialHubError):
    """
    Raised when an authenticated caller mutates something they do not own.

    When:    Updating/deleting another user's post, deleting another user's
             comment.
    HTTP:    403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Not authorized to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SocialHubError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so the handler can answer 404.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(SocialHubError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Driver details
    (SQL, constraint names) are logged server-side only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


@contextmanager
def database_errors(message: str, **context: Any) -> Iterator[None]:
    """
    Translates SQLAlchemy failures raised inside the block into DatabaseError.

    Application exceptions pass through untouched.

    Example:
        with database_errors("Could not load the feed", user_id=str(user_id)):
            result = await self.db.execute(query)
    """
    try:
        yield
    except SocialHubError:
        raise
    except SQLAlchemyError as e:
        logger.error("%s: %s", message, str(e), exc_info=True)
        raise DatabaseError(
            message=message,
            context={**context, "error_type": type(e).__name__},
        ) from e
