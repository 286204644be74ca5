# 📄 File: app/modules/user_management/presentation/api/v1/auth.py
# 🧭 Purpose (Layman Explanation):
# The web addresses used to sign up, log in, confirm an email address and reset a password.
#
# 🧪 Purpose (Technical Summary):
# FastAPI authentication endpoints delegating to AuthService. Domain errors propagate to the
# application exception handlers, which render the shared error envelope.
#
# 🔗 Dependencies:
# - FastAPI router, status codes, Query parameters
# - app.modules.user_management.presentation.api.schemas.auth_schemas
# - app.modules.user_management.presentation.dependencies (service wiring)
#
# 🔄 Connected Modules / Calls From:
# - app.main (user service includes this router under /api/auth)

"""
Authentication API Endpoints

Endpoints:
- POST /register: Create an account and send the confirmation email
- POST /login: Exchange credentials for an access token
- GET|POST /confirm-email: Confirm an email address with its token
- POST /forgot-password: Email a password reset link
- POST /reset-password: Set a new password with the reset token
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from app.modules.user_management.domain.services.auth_service import AuthService
from app.modules.user_management.presentation.api.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
)
from app.modules.user_management.presentation.dependencies import get_auth_service

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset link has been sent"

auth_router = APIRouter()


@auth_router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user account",
    responses={
        201: {"description": "User registered, confirmation email sent"},
        400: {"description": "Invalid registration data"},
        409: {"description": "Email already exists"},
    },
)
async def register(
    registration_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    user = await auth_service.register(
        registration_data.name,
        registration_data.email,
        registration_data.password,
    )
    return UserResponse.from_domain(user)


@auth_router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    responses={401: {"description": "Invalid credentials, inactive account or unconfirmed email"}},
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    result = await auth_service.login(login_data.email, login_data.password)
    return TokenResponse(
        token=result["access_token"],
        token_type=result["token_type"],
        expires_in=result["expires_in"],
    )


@auth_router.api_route(
    "/confirm-email",
    methods=["GET", "POST"],
    response_model=MessageResponse,
    summary="Confirm email address",
    responses={400: {"description": "Invalid or already used token"}},
)
async def confirm_email(
    token: str = Query(..., description="Confirmation token from the email"),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.confirm_email(token)
    return MessageResponse(message="Email confirmed successfully")


@auth_router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset link",
)
async def forgot_password(
    request_data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Always answers with the same message whether or not the account exists.
    """
    await auth_service.forgot_password(request_data.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@auth_router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password",
    responses={400: {"description": "Passwords do not match, weak password or invalid token"}},
)
async def reset_password(
    reset_data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.reset_password(
        reset_data.token,
        reset_data.new_password,
        reset_data.confirm_password,
    )
    return MessageResponse(message="Password has been reset successfully")
