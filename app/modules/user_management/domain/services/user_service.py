# 📄 File: app/modules/user_management/domain/services/user_service.py
# 🧭 Purpose (Layman Explanation):
# This file contains the business logic for managing accounts - looking them up, editing them,
# deleting or restoring them and switching them on or off - and tells the product service
# whenever an account goes away or comes back.
# 🧪 Purpose (Technical Summary):
# Domain service implementing user lifecycle rules (self-or-admin access, admin-only status
# changes, soft delete / restore) and publishing lifecycle integration events after commit.
# 🔗 Dependencies:
# User domain model, UserRepository port, UserEventPublisher, app.shared.core.security
# 🔄 Connected Modules / Calls From:
# API user endpoints (presentation/api/v1/users.py), app.main (admin seeding)

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from app.shared.config.settings import Settings, get_settings
from app.shared.core.dependencies import CurrentUser
from app.shared.core.exceptions import AuthorizationError, DuplicateResourceError, NotFoundError
from app.shared.core.security import hash_password

from ..events.user_events import UserEventPublisher
from ..models.user import User, UserRole
from ..repositories.user_repository import UserRepository
from .auth_service import validate_email, validate_name, validate_password

logger = logging.getLogger(__name__)


class UserService:
    """
    Domain service for user management business logic.

    Events are published only after the change is committed, so the product
    service never reacts to a change that was rolled back.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        event_publisher: UserEventPublisher,
        settings: Optional[Settings] = None,
    ):
        self.user_repository = user_repository
        self.event_publisher = event_publisher
        self.settings = settings or get_settings()

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_user(self, user_id: UUID, caller: CurrentUser) -> User:
        """
        Get a user visible to the caller.

        Raises:
            AuthorizationError: If the caller is neither the user nor an admin
            NotFoundError: If the user does not exist or is deleted
        """
        self._require_self_or_admin(user_id, caller)
        return await self._get_or_404(user_id)

    async def list_users(self, caller: CurrentUser) -> List[User]:
        if not caller.is_admin():
            raise AuthorizationError("Admin role required", resource_type="User")
        return await self.user_repository.list()

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def update_user(self, user_id: UUID, changes: Dict[str, Any], caller: CurrentUser) -> User:
        """
        Partially update name, email and password.

        Args:
            user_id: Target user
            changes: Any of `name`, `email`, `password`; missing or None keys keep stored values
            caller: Authenticated caller

        Raises:
            AuthorizationError: Unconfirmed caller, or neither self nor admin
            ValidationError: Invalid field value
            DuplicateResourceError: Email owned by another account
        """
        if not caller.email_confirmed:
            raise AuthorizationError("Email confirmation required")
        self._require_self_or_admin(user_id, caller)
        user = await self._get_or_404(user_id)

        if changes.get("name") is not None:
            user.name = validate_name(changes["name"])

        if changes.get("email") is not None:
            email = validate_email(changes["email"])
            if email != user.email:
                if await self.user_repository.email_exists(email, exclude_user_id=user.id):
                    raise DuplicateResourceError("Email already exists", field="email")
                user.email = email

        if changes.get("password") is not None:
            user.password_hash = hash_password(validate_password(changes["password"]))

        updated = await self.user_repository.update(user)
        await self.user_repository.commit()
        logger.info(f"User {user_id} updated by {caller.user_id}")
        return updated

    async def delete_user(self, user_id: UUID, caller: CurrentUser) -> None:
        """
        Soft delete a user and announce it.

        Deleting an already deleted account re-announces the deletion, which
        gives callers a retry path when the first announcement failed.

        Raises:
            AuthorizationError: If the caller is neither the user nor an admin
            NotFoundError: If the user does not exist
        """
        self._require_self_or_admin(user_id, caller)
        user = await self.user_repository.get_by_id(user_id, include_deleted=True)
        if user is None:
            raise NotFoundError("User", str(user_id))

        if not user.is_deleted:
            user.soft_delete()
            await self.user_repository.update(user)
            await self.user_repository.commit()
            logger.info(f"User {user_id} soft deleted by {caller.user_id}")

        await self.event_publisher.user_deleted(user_id)

    async def restore_user(self, user_id: UUID, caller: CurrentUser) -> User:
        """
        Restore a soft-deleted user (admin only).

        The announced status is the account's current active flag, so products
        come back only when the restored account is also active.
        """
        self._require_admin(caller)
        user = await self.user_repository.get_by_id(user_id, include_deleted=True)
        if user is None:
            raise NotFoundError("User", str(user_id))

        if user.is_deleted:
            user.restore()
            user = await self.user_repository.update(user)
            await self.user_repository.commit()
            logger.info(f"User {user_id} restored by {caller.user_id}")

        await self.event_publisher.user_status_changed(user_id, user.is_active)
        return user

    async def set_user_status(self, user_id: UUID, is_active: bool, caller: CurrentUser) -> User:
        """
        Activate or deactivate a user (admin only) and announce the new status.

        Raises:
            AuthorizationError: If the caller is not an admin
            NotFoundError: If the user does not exist or is deleted
        """
        self._require_admin(caller)
        user = await self._get_or_404(user_id)

        if user.set_active(is_active):
            user = await self.user_repository.update(user)
            await self.user_repository.commit()
            logger.info(f"User {user_id} active={is_active} set by {caller.user_id}")

        # always announced, consumers are idempotent
        await self.event_publisher.user_status_changed(user_id, is_active)
        return user

    async def seed_admin(self) -> Optional[User]:
        """
        Create the configured admin account once.

        Returns:
            User: The created admin, or None when nothing was created
        """
        if not self.settings.ADMIN_PASSWORD:
            logger.info("ADMIN_PASSWORD not set; skipping admin seeding")
            return None

        email = self.settings.ADMIN_EMAIL.strip().lower()
        if await self.user_repository.email_exists(email):
            logger.debug(f"Admin {email} already present")
            return None

        admin = User(
            name=self.settings.ADMIN_NAME,
            email=email,
            password_hash=hash_password(self.settings.ADMIN_PASSWORD),
            role=UserRole.ADMIN,
            is_active=True,
            email_confirmed=True,
        )
        created = await self.user_repository.add(admin)
        await self.user_repository.commit()
        logger.info(f"Seeded admin account {created.id}")
        return created

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _get_or_404(self, user_id: UUID) -> User:
        user = await self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    @staticmethod
    def _require_self_or_admin(user_id: UUID, caller: CurrentUser) -> None:
        if not caller.can_access(user_id):
            logger.warning(f"User {caller.user_id} denied access to user {user_id}")
            raise AuthorizationError(
                "Not allowed to access this user",
                resource_type="User",
                resource_id=str(user_id),
            )

    @staticmethod
    def _require_admin(caller: CurrentUser) -> None:
        if not caller.is_admin():
            raise AuthorizationError("Admin role required", resource_type="User")
