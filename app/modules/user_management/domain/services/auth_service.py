# 📄 File: app/modules/user_management/domain/services/auth_service.py
# 🧭 Purpose (Layman Explanation):
# Handles signing up, logging in, confirming an email address and resetting a forgotten password
# 🧪 Purpose (Technical Summary):
# Domain service implementing registration, credential checks, JWT issuing, email confirmation
# and single-use, time-bounded password reset tokens
# 🔗 Dependencies:
# Domain models, repositories, app.shared.core.security, email service
# 🔄 Connected Modules / Calls From:
# API auth endpoints (presentation/api/v1/auth.py), presentation dependencies

import logging
import re
from datetime import timedelta
from typing import Any, Dict, Optional

from app.shared.config.settings import Settings, get_settings
from app.shared.core.exceptions import AuthenticationError, DuplicateResourceError, ValidationError
from app.shared.core.security import (
    SecurityManager,
    generate_secure_token,
    get_security_manager,
    hash_password,
    verify_password,
)

from ..models.user import User, UserRole
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if len(name) < 2 or len(name) > 100:
        raise ValidationError("Name must be between 2 and 100 characters", field="name")
    return name


def validate_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email) or len(email) > 255:
        raise ValidationError("Invalid email format", field="email")
    return email


def validate_password(password: Optional[str], field: str = "password") -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field=field,
        )
    return password


class AuthService:
    """
    Domain service for authentication business logic.

    Business rules:
    - Email addresses are unique (case-insensitive)
    - Login requires a confirmed email and an active, non-deleted account
    - Confirmation and reset tokens are single use
    - Reset tokens expire after PASSWORD_RESET_TOKEN_EXPIRE_MINUTES
    - forgot_password never reveals whether an account exists
    """

    def __init__(
        self,
        user_repository: UserRepository,
        email_service,
        security_manager: Optional[SecurityManager] = None,
        settings: Optional[Settings] = None,
    ):
        self.user_repository = user_repository
        self.email_service = email_service
        self.security_manager = security_manager or get_security_manager()
        self.settings = settings or get_settings()

    async def register(self, name: str, email: str, password: str) -> User:
        """
        Register a new user and send the confirmation email.

        Args:
            name: Display name (2-100 characters)
            email: Email address
            password: Plain text password (min 8 characters)

        Returns:
            User: The created, unconfirmed user

        Raises:
            ValidationError: If any field is invalid
            DuplicateResourceError: If the email is taken
        """
        name = validate_name(name)
        email = validate_email(email)
        validate_password(password)

        if await self.user_repository.email_exists(email):
            raise DuplicateResourceError("Email already exists", field="email")

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.USER,
            is_active=True,
            email_confirmed=False,
            confirmation_token=generate_secure_token(),
        )
        created = await self.user_repository.add(user)
        await self.user_repository.commit()
        logger.info(f"User registered: {created.id}")

        link = f"{self.settings.PUBLIC_BASE_URL.rstrip('/')}/api/auth/confirm-email?token={created.confirmation_token}"
        await self.email_service.send_email(
            created.email,
            "Confirm your email",
            f"<a href='{link}'>Confirm your email</a>",
        )
        return created

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials and issue an access token.

        Returns:
            dict: access_token, token_type and expires_in (seconds)

        Raises:
            AuthenticationError: Invalid credentials, inactive account or unconfirmed email
        """
        user = await self.user_repository.get_by_email(email or "")

        if user is None or not verify_password(password or "", user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise AuthenticationError("Invalid credentials")

        if not user.can_login():
            logger.warning(f"Login attempt on inactive account {user.id}")
            raise AuthenticationError("Account is deactivated")

        if not user.email_confirmed:
            raise AuthenticationError("Email not confirmed")

        token = self.security_manager.create_access_token(
            subject=str(user.id),
            claims={
                "email": user.email,
                "role": user.role.value,
                "email_confirmed": user.email_confirmed,
            },
        )
        logger.info(f"User logged in: {user.id}")
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": self.settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    async def confirm_email(self, token: str) -> User:
        """
        Confirm an email address with its single-use token.

        Raises:
            ValidationError: If the token is unknown or already used
        """
        if not token:
            raise ValidationError("Invalid token", field="token")

        user = await self.user_repository.get_by_confirmation_token(token)
        if user is None:
            raise ValidationError("Invalid token", field="token")

        user.confirm_email()
        updated = await self.user_repository.update(user)
        await self.user_repository.commit()
        logger.info(f"Email confirmed for user {user.id}")
        return updated

    async def forgot_password(self, email: str) -> None:
        """
        Issue a reset token and email it when the account exists.
        Returns silently otherwise.
        """
        user = await self.user_repository.get_by_email(email or "")
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = generate_secure_token()
        user.issue_password_reset(
            token,
            timedelta(minutes=self.settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
        )
        await self.user_repository.update(user)
        await self.user_repository.commit()

        link = f"{self.settings.PUBLIC_BASE_URL.rstrip('/')}/reset-password?token={token}"
        await self.email_service.send_email(
            user.email,
            "Reset your password",
            f"<a href='{link}'>Reset your password</a>. "
            f"The link expires in {self.settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES} minutes.",
        )
        logger.info(f"Password reset issued for user {user.id}")

    async def reset_password(self, token: str, new_password: str, confirm_password: str) -> None:
        """
        Replace the password using a valid reset token.

        Raises:
            ValidationError: Password mismatch, weak password, unknown or expired token
        """
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")
        validate_password(new_password, field="new_password")

        user = await self.user_repository.get_by_reset_token(token or "") if token else None
        if user is None or not user.reset_token_valid(token):
            raise ValidationError("Invalid or expired token", field="token")

        user.reset_password(hash_password(new_password))
        await self.user_repository.update(user)
        await self.user_repository.commit()
        logger.info(f"Password reset for user {user.id}")
