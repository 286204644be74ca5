# 📄 File: app/modules/user_management/presentation/api/schemas/user_schemas.py
# 🧭 Purpose (Layman Explanation):
# Defines what user account data looks like when it is sent to and from the API.
#
# 🧪 Purpose (Technical Summary):
# Pydantic v2 request/response schemas for the users endpoints, serialized in camelCase
# (id, name, email, role, isActive, emailConfirmed, createdAt).
#
# 🔗 Dependencies:
# - pydantic (validation, camelCase aliases)
# - app.modules.user_management.domain.models.user (domain conversion)
#
# 🔄 Connected Modules / Calls From:
# - app.modules.user_management.presentation.api.v1.users

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from app.modules.user_management.domain.models.user import User


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class UserUpdateRequest(CamelModel):
    """
    Partial account update. Omitted fields keep their stored values.
    """

    name: Optional[str] = Field(default=None, description="New display name")
    email: Optional[EmailStr] = Field(default=None, description="New email address")
    password: Optional[str] = Field(default=None, description="New password (min 8 characters)")


class UserStatusUpdateRequest(CamelModel):
    is_active: bool = Field(..., description="Whether the account is active")


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class UserResponse(CamelModel):
    """Public representation of a user account."""

    id: UUID
    name: str
    email: str
    role: str
    is_active: bool
    email_confirmed: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            is_active=user.is_active,
            email_confirmed=user.email_confirmed,
            created_at=user.created_at,
        )


class UserListResponse(CamelModel):
    users: List[UserResponse]
    total: int
