# 📄 File: app/modules/user_management/presentation/api/schemas/auth_schemas.py
# 🧭 Purpose (Layman Explanation):
# Defines the forms used to sign up, log in and reset a password, and what comes back.
#
# 🧪 Purpose (Technical Summary):
# Pydantic v2 request/response schemas for the authentication endpoints (camelCase JSON).
# Field rules beyond basic typing are enforced by AuthService so error messages stay uniform.
#
# 🔗 Dependencies:
# - pydantic (validation and serialization)
# - user_schemas.CamelModel (shared camelCase config)
#
# 🔄 Connected Modules / Calls From:
# - app.modules.user_management.presentation.api.v1.auth

from pydantic import EmailStr, Field

from .user_schemas import CamelModel


class RegisterRequest(CamelModel):
    name: str = Field(..., description="Display name (2-100 characters)")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password (min 8 characters)")


class LoginRequest(CamelModel):
    email: str = Field(..., description="Registered email address")
    password: str = Field(..., description="Account password")


class ForgotPasswordRequest(CamelModel):
    email: EmailStr = Field(..., description="Email address of the account")


class ResetPasswordRequest(CamelModel):
    """
    Password reset with the emailed token. Both password fields must match.
    """

    token: str = Field(..., min_length=1, description="Reset token from the email")
    new_password: str = Field(..., description="New password (min 8 characters)")
    confirm_password: str = Field(..., description="Repeat of the new password")


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")


class MessageResponse(CamelModel):
    message: str
