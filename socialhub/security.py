"""
SocialHub Backend: Password Hashing & Token Primitives
========================================================

What:  bcrypt password hashing (passlib), signed session tokens (PyJWT), and
       password-reset token generation/digesting.
Who:   IdentityService and the bearer-auth dependency.

Token formats:
    Session token:  JWT (HS256) with claims {sub: <user uuid>, iat, exp}
    Reset token:    40 hex chars from secrets.token_hex(20); only its SHA-256
                    hex digest is ever stored

bcrypt is CPU-bound (~250ms at 12 rounds), so the async helpers run it in
Starlette's worker thread pool instead of on the event loop.

Helpers that depend on configuration take the app's Settings as `config`;
the module-level `settings` is only the fallback for callers running outside
an app (scripts, Alembic).
"""

import hashlib
import secrets
from functools import lru_cache
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from socialhub.config import Settings, settings as default_settings
from socialhub.exceptions import AuthError


@lru_cache(maxsize=None)
def crypt_context(rounds: int) -> CryptContext:
    """One CryptContext per bcrypt work factor."""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def _context(config: Optional[Settings]) -> CryptContext:
    return crypt_context((config or default_settings).bcrypt_rounds)


# ── Passwords ─────────────────────────────────────────────────────────────

async def hash_password(password: str, config: Optional[Settings] = None) -> str:
    """Salted bcrypt hash of `password` at the configured work factor."""
    return await run_in_threadpool(_context(config).hash, password)


async def verify_password(password: str, hashed: str, config: Optional[Settings] = None) -> bool:
    """Constant-time comparison of `password` against a stored bcrypt hash."""
    return await run_in_threadpool(_context(config).verify, password, hashed)


async def dummy_verify(config: Optional[Settings] = None) -> None:
    """
    Burns the same CPU time as verify_password() without a stored hash.

    Called on login with an unknown email so response timing does not reveal
    whether the account exists.
    """
    await run_in_threadpool(_context(config).dummy_verify)


# ── Session Tokens ────────────────────────────────────────────────────────

def create_access_token(
    user_id: UUID,
    expires_delta: Optional[timedelta] = None,
    config: Optional[Settings] = None,
) -> str:
    config = config or default_settings
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=config.jwt_expire_days))
    payload = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_access_token(token: str, config: Optional[Settings] = None) -> UUID:
    """
    Verifies signature and expiry, returns the user id the token is bound to.

    Raises:
        AuthError: expired, tampered, malformed, or missing the `sub` claim
    """
    config = config or default_settings
    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError(message="Token expired. Please login again")
    except jwt.InvalidTokenError:
        raise AuthError(message="Not authorized to access this route")

    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError):
        raise AuthError(message="Not authorized to access this route")


# ── Password Reset Tokens ─────────────────────────────────────────────────

def generate_reset_token() -> str:
    """Random URL-safe token handed to the user (never stored)."""
    return secrets.token_hex(20)


def hash_reset_token(token: str) -> str:
    """SHA-256 hex digest stored in users.reset_password_token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
