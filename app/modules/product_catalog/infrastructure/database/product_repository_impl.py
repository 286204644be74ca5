# 📄 File: app/modules/product_catalog/infrastructure/database/product_repository_impl.py
# 🧭 Purpose (Layman Explanation):
# This file handles all database work for products: saving, searching, and hiding or
# bringing back products, one product or a whole owner's catalog at a time.
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy async implementation of the ProductRepository port. Owner-guarded mutations and
# bulk owner operations are single conditional UPDATE statements whose rowcount is the result,
# so there is no read-then-write window.
#
# 🔗 Dependencies:
# - app.modules.product_catalog.domain (Product, ProductFilter, ProductRepository)
# - app.modules.product_catalog.infrastructure.database.models (ProductModel)
# - SQLAlchemy async session and Core update statements
#
# 🔄 Connected Modules / Calls From:
# - app.modules.product_catalog.presentation.dependencies (per-request wiring)
# - app.main (consistency coordinator repository factory)

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.product_catalog.domain.models.product import DeletionReason, Product, ProductFilter
from app.modules.product_catalog.domain.repositories.product_repository import ProductRepository
from app.modules.product_catalog.infrastructure.database.models import ProductModel
from app.shared.core.exceptions import RepositoryError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "price", "is_available")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ProductRepositoryImpl(ProductRepository):
    """
    SQLAlchemy implementation of the ProductRepository interface.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, product: Product) -> Product:
        try:
            model = ProductModel(
                id=product.id,
                name=product.name,
                description=product.description,
                price=product.price,
                is_available=product.is_available,
                user_id=product.user_id,
                is_deleted=product.is_deleted,
                deletion_reason=product.deletion_reason.value if product.deletion_reason else None,
                created_at=product.created_at,
                updated_at=product.updated_at,
            )
            self._session.add(model)
            await self._session.flush()
            logger.debug(f"Created product with ID: {model.id}")
            return self._model_to_domain(model)
        except SQLAlchemyError as e:
            logger.error(f"Database error during product creation: {str(e)}")
            raise RepositoryError(f"Failed to create product: {str(e)}", operation="add") from e

    async def get_by_id(self, product_id: UUID, include_deleted: bool = False) -> Optional[Product]:
        # bulk UPDATEs bypass the identity map, so rows are always re-read
        stmt = select(ProductModel).where(ProductModel.id == product_id).execution_options(populate_existing=True)
        if not include_deleted:
            stmt = stmt.where(ProductModel.is_deleted.is_(False))
        try:
            result = await self._session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._model_to_domain(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Database error getting product {product_id}: {str(e)}")
            raise RepositoryError(f"Failed to retrieve product: {str(e)}", operation="get_by_id") from e

    async def find(self, product_filter: ProductFilter) -> List[Product]:
        stmt = select(ProductModel).execution_options(populate_existing=True)

        if not product_filter.include_deleted:
            stmt = stmt.where(ProductModel.is_deleted.is_(False))

        if product_filter.search_term and product_filter.search_term.strip():
            pattern = f"%{_escape_like(product_filter.search_term.strip())}%"
            stmt = stmt.where(
                or_(
                    ProductModel.name.ilike(pattern, escape="\\"),
                    ProductModel.description.ilike(pattern, escape="\\"),
                )
            )
        if product_filter.min_price is not None:
            stmt = stmt.where(ProductModel.price >= product_filter.min_price)
        if product_filter.max_price is not None:
            stmt = stmt.where(ProductModel.price <= product_filter.max_price)
        if product_filter.is_available is not None:
            stmt = stmt.where(ProductModel.is_available.is_(product_filter.is_available))
        if product_filter.user_id is not None:
            stmt = stmt.where(ProductModel.user_id == product_filter.user_id)

        stmt = (
            stmt.order_by(ProductModel.created_at.desc(), ProductModel.id)
            .limit(product_filter.limit)
            .offset(product_filter.offset)
        )
        try:
            result = await self._session.execute(stmt)
            return [self._model_to_domain(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Database error listing products: {str(e)}")
            raise RepositoryError(f"Failed to list products: {str(e)}", operation="find") from e

    # =========================================================================
    # GUARDED AND BULK UPDATES
    # =========================================================================

    async def update_owned(self, product_id: UUID, owner_id: UUID, changes: Dict[str, Any]) -> bool:
        values = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        values["updated_at"] = datetime.now(timezone.utc)
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.user_id == owner_id,
                ProductModel.is_deleted.is_(False),
            )
            .values(**values)
        )
        return await self._execute_update(stmt, "update_owned") == 1

    async def soft_delete_owned(self, product_id: UUID, owner_id: UUID) -> bool:
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.user_id == owner_id,
                ProductModel.is_deleted.is_(False),
            )
            .values(
                is_deleted=True,
                deletion_reason=DeletionReason.OWNER.value,
                updated_at=datetime.now(timezone.utc),
            )
        )
        return await self._execute_update(stmt, "soft_delete_owned") == 1

    async def soft_delete_by_owner(self, user_id: UUID) -> int:
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.user_id == user_id,
                ProductModel.is_deleted.is_(False),
            )
            .values(
                is_deleted=True,
                deletion_reason=DeletionReason.OWNER_INACTIVE.value,
                updated_at=datetime.now(timezone.utc),
            )
        )
        return await self._execute_update(stmt, "soft_delete_by_owner")

    async def restore_by_owner(self, user_id: UUID) -> int:
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.user_id == user_id,
                ProductModel.is_deleted.is_(True),
                ProductModel.deletion_reason == DeletionReason.OWNER_INACTIVE.value,
            )
            .values(
                is_deleted=False,
                deletion_reason=None,
                updated_at=datetime.now(timezone.utc),
            )
        )
        return await self._execute_update(stmt, "restore_by_owner")

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error(f"Database error on commit: {str(e)}")
            raise RepositoryError(f"Failed to commit: {str(e)}", operation="commit") from e

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _execute_update(self, stmt, operation: str) -> int:
        try:
            result = await self._session.execute(stmt.execution_options(synchronize_session=False))
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Database error in {operation}: {str(e)}")
            raise RepositoryError(f"Failed to {operation.replace('_', ' ')}: {str(e)}", operation=operation) from e

    @staticmethod
    def _model_to_domain(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            name=model.name,
            description=model.description,
            price=model.price,
            is_available=model.is_available,
            user_id=model.user_id,
            is_deleted=model.is_deleted,
            deletion_reason=DeletionReason(model.deletion_reason) if model.deletion_reason else None,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
