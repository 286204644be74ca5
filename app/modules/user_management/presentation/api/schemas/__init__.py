"""
User Management API Schemas
"""

from .auth_schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from .user_schemas import (
    CamelModel,
    UserListResponse,
    UserResponse,
    UserStatusUpdateRequest,
    UserUpdateRequest,
)

__all__ = [
    "CamelModel",
    "ForgotPasswordRequest",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "UserListResponse",
    "UserResponse",
    "UserStatusUpdateRequest",
    "UserUpdateRequest",
]
