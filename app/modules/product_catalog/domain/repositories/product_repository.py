# 📄 File: app/modules/product_catalog/domain/repositories/product_repository.py
# 🧭 Purpose (Layman Explanation):
# Defines the contract for saving, finding, hiding and un-hiding products without saying
# which database is used
# 🧪 Purpose (Technical Summary):
# Single storage port for Product entities. Owner-scoped mutations are atomic conditional
# updates; bulk owner operations are single statements inside one transaction.
# 🔗 Dependencies:
# Domain models (Product, ProductFilter), typing, abc, uuid
# 🔄 Connected Modules / Calls From:
# ProductService, ConsistencyCoordinator, infrastructure implementation, test doubles

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..models.product import Product, ProductFilter


class ProductRepository(ABC):
    """
    Repository interface for Product data access.

    Implementation Notes:
    - Default reads exclude soft-deleted products
    - Methods return domain entities, not database models
    - Nothing is ever hard deleted
    """

    @abstractmethod
    async def add(self, product: Product) -> Product:
        """Persist a new product."""

    @abstractmethod
    async def get_by_id(self, product_id: UUID, include_deleted: bool = False) -> Optional[Product]:
        """Get a product; soft-deleted ones only when include_deleted is set."""

    @abstractmethod
    async def find(self, product_filter: ProductFilter) -> List[Product]:
        """List products matching every criterion of the filter."""

    @abstractmethod
    async def update_owned(self, product_id: UUID, owner_id: UUID, changes: Dict[str, Any]) -> bool:
        """
        Apply changes only if the product exists, belongs to owner_id and is not deleted.

        Returns:
            bool: True if exactly that product was updated, False if nothing matched
        """

    @abstractmethod
    async def soft_delete_owned(self, product_id: UUID, owner_id: UUID) -> bool:
        """Soft delete (reason `owner`) under the same guard as update_owned."""

    @abstractmethod
    async def soft_delete_by_owner(self, user_id: UUID) -> int:
        """Soft delete every live product of the user (reason `owner_inactive`); returns the count."""

    @abstractmethod
    async def restore_by_owner(self, user_id: UUID) -> int:
        """Restore the user's products deleted with reason `owner_inactive`; returns the count."""

    @abstractmethod
    async def commit(self) -> None:
        """Make pending changes durable before the response goes out."""
