# 📄 File: app/modules/product_catalog/domain/services/product_service.py
# 🧭 Purpose (Layman Explanation):
# The rules for the product catalog: only active accounts may add products, and only the
# owner may change or remove their own products.
# 🧪 Purpose (Technical Summary):
# Domain service for product CRUD. Creation is gated by the UserStatusOracle; updates and
# deletes run as one atomic conditional write on (id, owner, not deleted) and explain a miss
# afterwards (404 vs 403) without ever mutating.
# 🔗 Dependencies:
# Product domain model, ProductRepository port, UserStatusOracle port
# 🔄 Connected Modules / Calls From:
# API product endpoints (presentation/api/v1/products.py)

import logging
from typing import Any, Dict, List
from uuid import UUID

from app.shared.core.dependencies import CurrentUser
from app.shared.core.exceptions import AuthorizationError, NotFoundError

from ..models.product import (
    Product,
    ProductFilter,
    validate_changes,
    validate_description,
    validate_name,
    validate_price,
)
from ..repositories.product_repository import ProductRepository
from .user_status_oracle import UserStatusOracle

logger = logging.getLogger(__name__)


class ProductService:
    """
    Domain service for product business logic.
    """

    def __init__(self, repository: ProductRepository, oracle: UserStatusOracle):
        self.repository = repository
        self.oracle = oracle

    async def create_product(self, owner_id: UUID, data: Dict[str, Any], bearer_token: str) -> Product:
        """
        Create a product owned by the caller.

        Validation runs first, then the status check; nothing is persisted
        unless both pass.

        Args:
            owner_id: Authenticated caller, becomes the owner
            data: name, description, price, is_available
            bearer_token: Caller's token, forwarded to the user service

        Returns:
            Product: The stored product

        Raises:
            ValidationError: Invalid field
            AccountUnavailableError: Owner inactive or inaccessible
            UpstreamUnavailableError: User service unreachable
        """
        product = Product(
            name=validate_name(data.get("name")),
            description=validate_description(data.get("description")),
            price=validate_price(data.get("price")),
            is_available=bool(data.get("is_available", True)),
            user_id=owner_id,
        )

        await self.oracle.ensure_active(owner_id, bearer_token)

        created = await self.repository.add(product)
        await self.repository.commit()
        logger.info(f"Product {created.id} created by {owner_id}")
        return created

    async def get_product(self, product_id: UUID) -> Product:
        product = await self.repository.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", str(product_id))
        return product

    async def list_products(self, product_filter: ProductFilter, caller: CurrentUser) -> List[Product]:
        """
        Raises:
            AuthorizationError: include_deleted requested by a non-admin
        """
        if product_filter.include_deleted and not caller.is_admin():
            raise AuthorizationError("Admin role required to list deleted products", resource_type="Product")
        logger.debug(f"Listing products with filter {product_filter.model_dump(exclude_defaults=True)}")
        return await self.repository.find(product_filter)

    async def update_product(self, product_id: UUID, owner_id: UUID, changes: Dict[str, Any]) -> None:
        """
        Partially update a product the caller owns.

        Raises:
            ValidationError: Invalid field
            NotFoundError: Missing or deleted product
            AuthorizationError: Product belongs to someone else
        """
        validated = validate_changes(changes)
        if not await self.repository.update_owned(product_id, owner_id, validated):
            await self._explain_guard_miss(product_id, owner_id, "update")
        await self.repository.commit()
        logger.info(f"Product {product_id} updated by {owner_id}")

    async def delete_product(self, product_id: UUID, owner_id: UUID) -> None:
        """
        Soft delete a product the caller owns.

        Raises:
            NotFoundError: Missing or already deleted product
            AuthorizationError: Product belongs to someone else
        """
        if not await self.repository.soft_delete_owned(product_id, owner_id):
            await self._explain_guard_miss(product_id, owner_id, "delete")
        await self.repository.commit()
        logger.info(f"Product {product_id} soft-deleted by {owner_id}")

    async def _explain_guard_miss(self, product_id: UUID, owner_id: UUID, action: str) -> None:
        product = await self.repository.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", str(product_id))
        logger.warning(f"User {owner_id} attempted to {action} product {product_id}")
        raise AuthorizationError(
            "Access denied",
            resource_type="Product",
            resource_id=str(product_id),
        )
