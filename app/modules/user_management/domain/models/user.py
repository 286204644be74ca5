# 📄 File: app/modules/user_management/domain/models/user.py
# 🧭 Purpose (Layman Explanation):
# Defines what a "user" is - their name, email, password, role and whether the account is
# switched on, confirmed or deleted - and the rules for changing those things.
# 🧪 Purpose (Technical Summary):
# Domain model for the User entity with lifecycle transitions (confirmation, activation,
# soft delete / restore) and single-use, time-bounded password reset tokens.
# 🔗 Dependencies:
# pydantic, datetime, typing, uuid
# 🔄 Connected Modules / Calls From:
# user_service.py, auth_service.py, user_repository.py, user_repository_impl.py, API schemas

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRole(str, Enum):
    """User role enumeration"""
    USER = "User"
    ADMIN = "Admin"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class User(BaseModel):
    """
    User domain model.

    Contains identity, credential and lifecycle flags. Users are never hard
    deleted; `is_deleted` hides them from default queries.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    email: str
    password_hash: str
    role: UserRole = UserRole.USER

    is_active: bool = True
    is_deleted: bool = False
    email_confirmed: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    confirmation_token: Optional[str] = None
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are stored lower-cased and trimmed"""
        email = v.strip().lower()
        if not email:
            raise ValueError('Email is required')
        return email

    @field_validator('password_hash')
    @classmethod
    def validate_password_hash(cls, v: str) -> str:
        if not v:
            raise ValueError('Password hash is required')
        return v

    # =========================================================================
    # QUERIES
    # =========================================================================

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_login(self) -> bool:
        return self.is_active and not self.is_deleted

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def confirm_email(self) -> None:
        """Mark email confirmed and burn the confirmation token"""
        self.email_confirmed = True
        self.confirmation_token = None

    def set_active(self, is_active: bool) -> bool:
        """Set the active flag. Returns True when the value changed."""
        changed = self.is_active != is_active
        self.is_active = is_active
        return changed

    def soft_delete(self) -> None:
        self.is_deleted = True

    def restore(self) -> None:
        self.is_deleted = False

    def issue_password_reset(self, token: str, ttl: timedelta, now: Optional[datetime] = None) -> None:
        """Store a new reset token, replacing any previous one"""
        self.password_reset_token = token
        self.password_reset_expires = (now or _utcnow()) + ttl

    def reset_token_valid(self, token: str, now: Optional[datetime] = None) -> bool:
        if not self.password_reset_token or self.password_reset_token != token:
            return False
        if self.password_reset_expires is None:
            return False
        return _as_utc(self.password_reset_expires) > (now or _utcnow())

    def reset_password(self, new_password_hash: str) -> None:
        """Replace the credential and burn the reset token"""
        self.password_hash = new_password_hash
        self.password_reset_token = None
        self.password_reset_expires = None
