# 📄 File: app/modules/user_management/infrastructure/database/user_repository_impl.py
# 🧭 Purpose (Layman Explanation):
# This file handles all database work for user accounts: saving new users, finding them by id,
# email or one-time token, and saving changes.
#
# 🧪 Purpose (Technical Summary):
# Concrete implementation of the UserRepository port using SQLAlchemy async sessions,
# mapping between domain User entities and UserModel rows with error translation and logging.
#
# 🔗 Dependencies:
# - app.modules.user_management.domain.repositories.user_repository (interface)
# - app.modules.user_management.domain.models.user (domain model)
# - app.modules.user_management.infrastructure.database.models (SQLAlchemy models)
# - SQLAlchemy async session and query operations
#
# 🔄 Connected Modules / Calls From:
# - app.modules.user_management.presentation.dependencies (per-request wiring)
# - app.main (admin seeding)

"""
User Repository Implementation

Default queries exclude soft-deleted users. Email lookups are case-insensitive
because emails are stored lower-cased.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.user_management.domain.models.user import User, UserRole
from app.modules.user_management.domain.repositories.user_repository import UserRepository
from app.modules.user_management.infrastructure.database.models import UserModel
from app.shared.core.exceptions import DuplicateResourceError, NotFoundError, RepositoryError

logger = logging.getLogger(__name__)


class UserRepositoryImpl(UserRepository):
    """
    SQLAlchemy implementation of the UserRepository interface.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the user repository.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self._session = session

    async def add(self, user: User) -> User:
        """
        Persist a new user.

        Args:
            user: Domain User entity to create

        Returns:
            User: Created user entity

        Raises:
            DuplicateResourceError: If user with email already exists
            RepositoryError: For other database errors
        """
        try:
            user_model = self._domain_to_model(user, UserModel())
            self._session.add(user_model)
            await self._session.flush()
            logger.info(f"Created user with ID: {user_model.id}")
            return self._model_to_domain(user_model)

        except IntegrityError as e:
            logger.warning(f"User creation failed - email already exists: {user.email}")
            raise DuplicateResourceError("Email already exists", field="email") from e

        except SQLAlchemyError as e:
            logger.error(f"Database error during user creation: {str(e)}")
            raise RepositoryError(f"Failed to create user: {str(e)}", operation="add") from e

    async def update(self, user: User) -> User:
        try:
            user_model = await self._session.get(UserModel, user.id)
            if user_model is None:
                raise NotFoundError("User", str(user.id))

            self._domain_to_model(user, user_model)
            await self._session.flush()
            logger.debug(f"Updated user: {user.id}")
            return self._model_to_domain(user_model)

        except IntegrityError as e:
            logger.warning(f"User update failed - email already exists: {user.email}")
            raise DuplicateResourceError("Email already exists", field="email") from e

        except SQLAlchemyError as e:
            logger.error(f"Database error updating user {user.id}: {str(e)}")
            raise RepositoryError(f"Failed to update user: {str(e)}", operation="update") from e

    async def get_by_id(self, user_id: UUID, include_deleted: bool = False) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.id == user_id)
        if not include_deleted:
            stmt = stmt.where(UserModel.is_deleted.is_(False))
        return await self._first(stmt, f"get_by_id {user_id}")

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(
            UserModel.email == email.strip().lower(),
            UserModel.is_deleted.is_(False),
        )
        return await self._first(stmt, "get_by_email")

    async def get_by_confirmation_token(self, token: str) -> Optional[User]:
        stmt = select(UserModel).where(
            UserModel.confirmation_token == token,
            UserModel.is_deleted.is_(False),
            UserModel.email_confirmed.is_(False),
        )
        return await self._first(stmt, "get_by_confirmation_token")

    async def get_by_reset_token(self, token: str) -> Optional[User]:
        stmt = select(UserModel).where(
            UserModel.password_reset_token == token,
            UserModel.is_deleted.is_(False),
        )
        return await self._first(stmt, "get_by_reset_token")

    async def list(self, include_deleted: bool = False) -> List[User]:
        stmt = select(UserModel).order_by(UserModel.created_at)
        if not include_deleted:
            stmt = stmt.where(UserModel.is_deleted.is_(False))
        try:
            result = await self._session.execute(stmt)
            return [self._model_to_domain(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Database error listing users: {str(e)}")
            raise RepositoryError(f"Failed to list users: {str(e)}", operation="list") from e

    async def email_exists(self, email: str, exclude_user_id: Optional[UUID] = None) -> bool:
        stmt = select(func.count()).select_from(UserModel).where(UserModel.email == email.strip().lower())
        if exclude_user_id is not None:
            stmt = stmt.where(UserModel.id != exclude_user_id)
        try:
            result = await self._session.execute(stmt)
            return result.scalar_one() > 0
        except SQLAlchemyError as e:
            logger.error(f"Database error checking email: {str(e)}")
            raise RepositoryError(f"Failed to check email: {str(e)}", operation="email_exists") from e

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise DuplicateResourceError("Email already exists", field="email") from e
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error(f"Database error on commit: {str(e)}")
            raise RepositoryError(f"Failed to commit: {str(e)}", operation="commit") from e

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _first(self, stmt, operation: str) -> Optional[User]:
        try:
            result = await self._session.execute(stmt)
            user_model = result.scalar_one_or_none()
            return self._model_to_domain(user_model) if user_model else None
        except SQLAlchemyError as e:
            logger.error(f"Database error in {operation}: {str(e)}")
            raise RepositoryError(f"Failed to retrieve user: {str(e)}", operation=operation) from e

    @staticmethod
    def _model_to_domain(model: UserModel) -> User:
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            password_hash=model.password_hash,
            role=UserRole(model.role),
            is_active=model.is_active,
            is_deleted=model.is_deleted,
            email_confirmed=model.email_confirmed,
            created_at=model.created_at,
            confirmation_token=model.confirmation_token,
            password_reset_token=model.password_reset_token,
            password_reset_expires=model.password_reset_expires,
        )

    @staticmethod
    def _domain_to_model(user: User, model: UserModel) -> UserModel:
        model.id = user.id
        model.name = user.name
        model.email = user.email
        model.password_hash = user.password_hash
        model.role = user.role.value
        model.is_active = user.is_active
        model.is_deleted = user.is_deleted
        model.email_confirmed = user.email_confirmed
        model.created_at = user.created_at
        model.confirmation_token = user.confirmation_token
        model.password_reset_token = user.password_reset_token
        model.password_reset_expires = user.password_reset_expires
        return model
