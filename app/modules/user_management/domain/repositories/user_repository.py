# 📄 File: app/modules/user_management/domain/repositories/user_repository.py
# 🧭 Purpose (Layman Explanation):
# Defines the contract for how to save and find user accounts without saying which database is used
# 🧪 Purpose (Technical Summary):
# Storage port for User entities following the Repository pattern and dependency inversion principle.
# Default lookups hide soft-deleted users; nothing is ever hard deleted.
# 🔗 Dependencies:
# Domain models (User), typing, abc, uuid
# 🔄 Connected Modules / Calls From:
# Domain services (UserService, AuthService), infrastructure implementation, test doubles

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from ..models.user import User


class UserRepository(ABC):
    """
    Repository interface for User entity data access operations.

    Implementation Notes:
    - Concrete implementations are in infrastructure layer
    - Methods return domain entities (User), not database models
    - All operations are async for non-blocking I/O
    """

    @abstractmethod
    async def add(self, user: User) -> User:
        """
        Persist a new user.

        Raises:
            DuplicateResourceError: If the email is already registered
            RepositoryError: If database operation fails
        """

    @abstractmethod
    async def update(self, user: User) -> User:
        """
        Save changes to an existing user.

        Raises:
            NotFoundError: If the user does not exist
            DuplicateResourceError: If the new email is already registered
        """

    @abstractmethod
    async def get_by_id(self, user_id: UUID, include_deleted: bool = False) -> Optional[User]:
        """Get user by ID; soft-deleted users only when include_deleted is set."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a non-deleted user by email (case-insensitive)."""

    @abstractmethod
    async def get_by_confirmation_token(self, token: str) -> Optional[User]:
        """Get a non-deleted, unconfirmed user holding this confirmation token."""

    @abstractmethod
    async def get_by_reset_token(self, token: str) -> Optional[User]:
        """Get a non-deleted user holding this password reset token."""

    @abstractmethod
    async def list(self, include_deleted: bool = False) -> List[User]:
        """List users ordered by creation time."""

    @abstractmethod
    async def email_exists(self, email: str, exclude_user_id: Optional[UUID] = None) -> bool:
        """Check whether any user (deleted ones included) owns this email."""

    @abstractmethod
    async def commit(self) -> None:
        """Make pending changes durable before side effects (events, emails) go out."""
