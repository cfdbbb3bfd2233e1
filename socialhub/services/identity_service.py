"""
SocialHub Backend: Identity Service
=====================================

What:  Accounts, credentials, session tokens and password resets.
Who:   Called by the /auth routes, PUT /profiles/me, and the bearer-auth
       dependency (authenticate).

Flows:
    register        → uniqueness checks (email first, then username) → bcrypt
                      hash → INSERT → session token
    login           → lookup by email → constant-time verify → session token
    forgot-password → random token → store SHA-256 digest + expiry → Mailer
    reset-password  → digest lookup (expiry > now) → new hash → clear reset
                      fields → fresh session token

Error shapes:
    Unknown email and wrong password both raise AuthError("Invalid
    credentials"). Unknown, expired and already-used reset tokens all raise
    InvalidTokenError.
"""

import logging
from datetime import timedelta
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.config import Settings, settings as default_settings
from socialhub.exceptions import (
    AuthError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    ValidationError,
    database_errors,
)
from socialhub.models.follow import Follow
from socialhub.models.user import User, utcnow
from socialhub.schemas.user import UserResponse
from socialhub.security import (
    create_access_token,
    decode_access_token,
    dummy_verify,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from socialhub.services.mailer import LoggingMailer, Mailer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class IdentityService:
    """
    Business logic for accounts and authentication.

    Constructed per request with that request's session. The mailer is only
    used by request_password_reset().
    """

    def __init__(
        self,
        db: AsyncSession,
        mailer: Optional[Mailer] = None,
        config: Optional[Settings] = None,
    ):
        self.db = db
        self.config = config or default_settings
        self.mailer = mailer or LoggingMailer(self.config)

    # ── Registration & Login ──────────────────────────────────────────────

    async def register(self, username: str, email: str, password: str) -> Tuple[User, str]:
        """
        Creates an account and returns it with a session token.

        Raises:
            ConflictError: email or username already taken (field named)
        """
        with database_errors("Could not create the account"):
            if await self._exists(User.email == email):
                raise ConflictError(message="Email already in use", field="email")
            if await self._exists(User.username == username):
                raise ConflictError(message="Username already taken", field="username")

            user = User(
                username=username,
                email=email,
                password=await hash_password(password, config=self.config),
            )
            self.db.add(user)
            try:
                await self.db.flush()
            except IntegrityError:
                # Lost a race against a concurrent registration
                raise ConflictError(message="Email or username already in use")

        logger.info("User registered: %s (%s)", user.username, user.id)
        return user, create_access_token(user.id, config=self.config)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Raises:
            AuthError: unknown email or wrong password (same message)
        """
        with database_errors("Could not log in"):
            user = await self._get_by(User.email == email)

        if user is None:
            await dummy_verify(config=self.config)
            raise AuthError(message=INVALID_CREDENTIALS)
        if not await verify_password(password, user.password, config=self.config):
            raise AuthError(message=INVALID_CREDENTIALS)

        return user, create_access_token(user.id, config=self.config)

    # ── Current User ──────────────────────────────────────────────────────

    async def authenticate(self, token: str) -> User:
        """
        Resolves a bearer token to its user.

        Raises:
            AuthError: invalid/expired token, or the user no longer exists
        """
        user_id = decode_access_token(token, config=self.config)
        with database_errors("Could not authenticate"):
            user = await self.db.get(User, user_id)
        if user is None:
            raise AuthError(message="Not authorized to access this route")
        return user

    async def get_me(self, user: User) -> UserResponse:
        """The caller's own account with live follower/following counts."""
        with database_errors("Could not load the account", user_id=str(user.id)):
            followers = await self.db.scalar(
                select(func.count()).select_from(Follow).where(Follow.following_id == user.id)
            )
            following = await self.db.scalar(
                select(func.count()).select_from(Follow).where(Follow.follower_id == user.id)
            )

        response = UserResponse.model_validate(user)
        response.followers_count = followers or 0
        response.following_count = following or 0
        return response

    async def get_current_user(self, token: str) -> UserResponse:
        return await self.get_me(await self.authenticate(token))

    # ── Profile ───────────────────────────────────────────────────────────

    async def update_profile(
        self,
        user_id: UUID,
        bio: Optional[str] = None,
        profile_picture: Optional[str] = None,
    ) -> UserResponse:
        """Updates whichever of bio / profile_picture were supplied."""
        with database_errors("Could not update the profile", user_id=str(user_id)):
            user = await self.db.get(User, user_id)
            if user is None:
                raise NotFoundError(resource="user", resource_id=str(user_id))
            if bio is not None:
                user.bio = bio
            if profile_picture is not None:
                user.profile_picture = profile_picture
            await self.db.flush()

        logger.info("Profile updated: %s", user_id)
        return await self.get_me(user)

    # ── Passwords ─────────────────────────────────────────────────────────

    async def request_password_reset(self, email: str) -> None:
        """
        Issues a reset token for `email` if such an account exists.

        The caller gets the same outcome either way; only the mailer learns
        whether a token was issued.
        """
        with database_errors("Could not process the reset request"):
            user = await self._get_by(User.email == email)
            if user is None:
                logger.info("Password reset requested for unknown email")
                return

            token = generate_reset_token()
            user.reset_password_token = hash_reset_token(token)
            user.reset_password_expire = utcnow() + timedelta(
                minutes=self.config.reset_token_expire_minutes
            )
            await self.db.flush()

        reset_url = f"{self.config.frontend_url.rstrip('/')}/reset-password/{token}"
        await self.mailer.send_password_reset(user.email, reset_url)

    async def reset_password(self, token: str, new_password: str) -> Tuple[User, str]:
        """
        Consumes a reset token and sets a new password.

        Raises:
            InvalidTokenError: token unknown, expired, or already used
            ValidationError:   new password too short
        """
        self._check_password_length(new_password)
        digest = hash_reset_token(token)

        with database_errors("Could not reset the password"):
            user = await self._get_by(
                User.reset_password_token == digest,
                User.reset_password_expire > utcnow(),
            )
            if user is None:
                raise InvalidTokenError()

            user.password = await hash_password(new_password, config=self.config)
            user.reset_password_token = None
            user.reset_password_expire = None
            await self.db.flush()

        logger.info("Password reset completed: %s", user.id)
        return user, create_access_token(user.id, config=self.config)

    async def change_password(
        self,
        user_id: UUID,
        current_password: str,
        new_password: str,
    ) -> Tuple[User, str]:
        """
        Raises:
            AuthError:       current password does not match
            ValidationError: new password too short
        """
        with database_errors("Could not change the password", user_id=str(user_id)):
            user = await self.db.get(User, user_id)
            if user is None:
                raise NotFoundError(resource="user", resource_id=str(user_id))

            if not await verify_password(current_password, user.password, config=self.config):
                raise AuthError(message="Current password is incorrect")
            self._check_password_length(new_password)

            user.password = await hash_password(new_password, config=self.config)
            await self.db.flush()

        logger.info("Password changed: %s", user_id)
        return user, create_access_token(user.id, config=self.config)

    # ── Helpers ───────────────────────────────────────────────────────────

    def _check_password_length(self, password: str) -> None:
        minimum = self.config.password_min_length
        if len(password) < minimum:
            raise ValidationError(
                message=f"Password must be at least {minimum} characters",
                field="password",
            )

    async def _exists(self, *criteria) -> bool:
        return await self.db.scalar(select(User.id).where(*criteria).limit(1)) is not None

    async def _get_by(self, *criteria) -> Optional[User]:
        result = await self.db.execute(select(User).where(*criteria))
        return result.scalar_one_or_none()
