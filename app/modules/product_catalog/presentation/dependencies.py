# 📄 File: app/modules/product_catalog/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Hands each catalog request a database connection and the ready-made product services.
# 🧪 Purpose (Technical Summary):
# FastAPI dependency providers for the product service: per-request AsyncSession from
# app.state.db, the repository, the user service client (app.state.user_service_client)
# and the process-wide consistency coordinator (app.state.coordinator).
# 🔗 Dependencies:
# FastAPI, SQLAlchemy AsyncSession, app.modules.product_catalog.*
# 🔄 Connected Modules / Calls From:
# app.modules.product_catalog.presentation.api.v1.products

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.product_catalog.domain.repositories.product_repository import ProductRepository
from app.modules.product_catalog.domain.services.consistency_coordinator import ConsistencyCoordinator
from app.modules.product_catalog.domain.services.product_service import ProductService
from app.modules.product_catalog.domain.services.user_status_oracle import UserStatusOracle
from app.modules.product_catalog.infrastructure.database.product_repository_impl import ProductRepositoryImpl


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield one transactional session per request."""
    async with request.app.state.db.session() as session:
        yield session


def get_product_repository(session: AsyncSession = Depends(get_db_session)) -> ProductRepository:
    return ProductRepositoryImpl(session)


def get_user_status_oracle(request: Request) -> UserStatusOracle:
    return request.app.state.user_service_client


def get_product_service(
    repository: ProductRepository = Depends(get_product_repository),
    oracle: UserStatusOracle = Depends(get_user_status_oracle),
) -> ProductService:
    return ProductService(repository, oracle)


def get_consistency_coordinator(request: Request) -> ConsistencyCoordinator:
    return request.app.state.coordinator
