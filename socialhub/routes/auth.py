"""
SocialHub Backend: Auth Route Handlers
========================================

What:  Registration, login, current user, and password management.

    POST /auth/register                 public
    POST /auth/login                    public
    GET  /auth/me                       bearer
    POST /auth/forgot-password          public
    PUT  /auth/reset-password/{token}   public
    PUT  /auth/change-password          bearer
"""

import logging

from fastapi import APIRouter, Depends

from socialhub.dependencies import get_current_user, get_identity_service
from socialhub.models.user import User
from socialhub.schemas.common import ApiResponse, ErrorResponse, MessageResponse
from socialhub.schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from socialhub.services.identity_service import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

RESET_REQUESTED_MESSAGE = "If that email is registered, a reset link has been sent"


async def _auth_response(identity: IdentityService, user: User, token: str) -> ApiResponse[AuthResponse]:
    return ApiResponse[AuthResponse](
        data=AuthResponse(token=token, user=await identity.get_me(user))
    )


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse[AuthResponse],
    responses={400: {"description": "Invalid input or duplicate email/username", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    user, token = await identity.register(body.username, body.email, body.password)
    return await _auth_response(identity, user, token)


@router.post(
    "/login",
    response_model=ApiResponse[AuthResponse],
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for a session token",
)
async def login(
    body: LoginRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    user, token = await identity.login(body.email, body.password)
    return await _auth_response(identity, user, token)


@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    responses={401: {"model": ErrorResponse}},
    summary="The authenticated user with follower counts",
)
async def me(
    user: User = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
):
    return ApiResponse[UserResponse](data=await identity.get_me(user))


@router.post(
    "/forgot-password",
    response_model=ApiResponse[MessageResponse],
    summary="Request a password reset link",
    description="Responds identically whether or not the email belongs to an account.",
)
async def forgot_password(
    body: ForgotPasswordRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    await identity.request_password_reset(body.email)
    return ApiResponse[MessageResponse](data=MessageResponse(message=RESET_REQUESTED_MESSAGE))


@router.put(
    "/reset-password/{token}",
    response_model=ApiResponse[AuthResponse],
    responses={400: {"description": "Invalid or expired token", "model": ErrorResponse}},
    summary="Set a new password using a reset token",
)
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    user, session_token = await identity.reset_password(token, body.password)
    return await _auth_response(identity, user, session_token)


@router.put(
    "/change-password",
    response_model=ApiResponse[AuthResponse],
    responses={
        400: {"description": "New password too short", "model": ErrorResponse},
        401: {"description": "Current password is incorrect", "model": ErrorResponse},
    },
    summary="Change the password of the authenticated user",
)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
):
    user, token = await identity.change_password(user.id, body.current_password, body.new_password)
    return await _auth_response(identity, user, token)
