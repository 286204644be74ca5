# 📄 File: app/modules/product_catalog/domain/services/consistency_coordinator.py
# 🧭 Purpose (Layman Explanation):
# When an account is switched off or deleted, this hides all of its products; when the
# account is switched back on, it brings back the products it hid (but not the ones the
# owner removed on purpose).
# 🧪 Purpose (Technical Summary):
# Applies user lifecycle changes to the product store. Each operation is one bulk conditional
# UPDATE in its own transaction, so it is all-or-nothing and idempotent. Shared by the event
# consumers and the synchronous sync-user endpoint so both converge on the same state.
# 🔗 Dependencies:
# ProductRepository port, a session factory (DatabaseSessionManager.session)
# 🔄 Connected Modules / Calls From:
# application.handlers.user_lifecycle_handlers, presentation/api/v1/products.py (sync-user)

import logging
from typing import AsyncContextManager, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]
RepositoryFactory = Callable[[AsyncSession], ProductRepository]


class ConsistencyCoordinator:
    """
    Propagates user status to that user's products.

    Bulk operations bypass per-product ownership checks; they are driven by the
    user service, not by the owner.
    """

    def __init__(self, session_factory: SessionFactory, repository_factory: RepositoryFactory):
        self._session_factory = session_factory
        self._repository_factory = repository_factory

    async def deactivate_all(self, user_id: UUID) -> int:
        """
        Soft delete every live product of the user.

        Returns:
            int: Number of products newly deleted (0 when repeated)
        """
        async with self._session_factory() as session:
            repository = self._repository_factory(session)
            count = await repository.soft_delete_by_owner(user_id)
            await repository.commit()
        logger.info(f"Deactivated {count} product(s) of user {user_id}")
        return count

    async def reactivate_all(self, user_id: UUID) -> int:
        """
        Restore the products hidden because the owner became inactive.

        Products the owner deleted individually stay deleted. No revalidation of
        price or availability happens on restore.

        Returns:
            int: Number of products restored (0 when repeated)
        """
        async with self._session_factory() as session:
            repository = self._repository_factory(session)
            count = await repository.restore_by_owner(user_id)
            await repository.commit()
        logger.info(f"Reactivated {count} product(s) of user {user_id}")
        return count

    async def sync_user_status(self, user_id: UUID, is_active: bool) -> int:
        logger.info(f"Syncing user status: user {user_id}, active={is_active}")
        if is_active:
            return await self.reactivate_all(user_id)
        return await self.deactivate_all(user_id)
