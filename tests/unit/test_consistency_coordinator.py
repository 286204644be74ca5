"""Unit tests for propagating user status to products."""

import asyncio
import uuid
from decimal import Decimal

from app.modules.product_catalog.domain.models.product import DeletionReason, Product
from app.modules.product_catalog.infrastructure.database.product_repository_impl import ProductRepositoryImpl


async def seed(db, owner_id, count=3):
    ids = []
    async with db.session() as session:
        repository = ProductRepositoryImpl(session)
        for i in range(count):
            product = await repository.add(Product(name=f"Item {i}", price=Decimal("9.99"), user_id=owner_id))
            ids.append(product.id)
    return ids


async def states(db, product_ids):
    async with db.session() as session:
        repository = ProductRepositoryImpl(session)
        products = [await repository.get_by_id(pid, include_deleted=True) for pid in product_ids]
    return [(p.is_deleted, p.deletion_reason) for p in products]


class TestConsistencyCoordinator:
    """Bulk deactivation and reactivation by owner."""

    async def test_deactivate_all_is_idempotent(self, product_db, coordinator):
        owner = uuid.uuid4()
        ids = await seed(product_db, owner)

        assert await coordinator.deactivate_all(owner) == 3
        assert await coordinator.deactivate_all(owner) == 0
        assert await states(product_db, ids) == [(True, DeletionReason.OWNER_INACTIVE)] * 3

    async def test_reactivate_all_is_idempotent(self, product_db, coordinator):
        owner = uuid.uuid4()
        ids = await seed(product_db, owner)
        await coordinator.deactivate_all(owner)

        assert await coordinator.reactivate_all(owner) == 3
        assert await coordinator.reactivate_all(owner) == 0
        assert await states(product_db, ids) == [(False, None)] * 3

    async def test_reactivate_skips_products_the_owner_deleted(self, product_db, coordinator):
        owner = uuid.uuid4()
        kept, removed = await seed(product_db, owner, count=2)
        async with product_db.session() as session:
            await ProductRepositoryImpl(session).soft_delete_owned(removed, owner)

        await coordinator.deactivate_all(owner)
        await coordinator.reactivate_all(owner)

        assert await states(product_db, [kept, removed]) == [
            (False, None),
            (True, DeletionReason.OWNER),
        ]

    async def test_sync_user_status_dispatches_on_flag(self, product_db, coordinator):
        owner = uuid.uuid4()
        ids = await seed(product_db, owner, count=2)

        assert await coordinator.sync_user_status(owner, False) == 2
        assert await coordinator.sync_user_status(owner, True) == 2
        assert await states(product_db, ids) == [(False, None)] * 2

    async def test_unknown_user_is_a_no_op(self, coordinator):
        assert await coordinator.deactivate_all(uuid.uuid4()) == 0
        assert await coordinator.reactivate_all(uuid.uuid4()) == 0

    async def test_concurrent_deactivations_delete_each_product_once(self, product_db, coordinator):
        owner = uuid.uuid4()
        ids = await seed(product_db, owner, count=5)

        counts = await asyncio.gather(coordinator.deactivate_all(owner), coordinator.deactivate_all(owner))

        assert sum(counts) == 5
        assert await states(product_db, ids) == [(True, DeletionReason.OWNER_INACTIVE)] * 5

    async def test_other_owners_are_untouched(self, product_db, coordinator):
        owner, other = uuid.uuid4(), uuid.uuid4()
        await seed(product_db, owner)
        other_ids = await seed(product_db, other, count=2)

        await coordinator.deactivate_all(owner)

        assert await states(product_db, other_ids) == [(False, None)] * 2
