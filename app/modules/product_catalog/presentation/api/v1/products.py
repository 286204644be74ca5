# 📄 File: app/modules/product_catalog/presentation/api/v1/products.py
# 🧭 Purpose (Layman Explanation):
# The web addresses for the product catalog: adding, browsing, editing and removing products,
# plus an internal address the user service can call to switch a person's products on or off.
#
# 🧪 Purpose (Technical Summary):
# FastAPI product endpoints delegating to ProductService and ConsistencyCoordinator. All
# product endpoints require a bearer token; sync-user also accepts the service API key.
#
# 🔗 Dependencies:
# - FastAPI router, Query parameters, status codes
# - app.shared.core.dependencies (caller authentication, service caller)
# - app.modules.product_catalog.presentation.dependencies (service wiring)
#
# 🔄 Connected Modules / Calls From:
# - app.main (product service includes this router under /api/products)

"""
Products API Endpoints

Endpoints:
- POST /: Create a product (owner must be active in the user service)
- GET /{product_id}: Get a product
- GET /: List products with filters
- PUT /{product_id}: Partially update an owned product
- DELETE /{product_id}: Soft delete an owned product
- POST|PUT /sync-user/{user_id}: Push a user's status (service key, admin or self)
"""

import logging
from decimal import Decimal
from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.modules.product_catalog.domain.models.product import ProductFilter
from app.modules.product_catalog.domain.services.consistency_coordinator import ConsistencyCoordinator
from app.modules.product_catalog.domain.services.product_service import ProductService
from app.modules.product_catalog.domain.services.user_status_oracle import UserStatusOracle
from app.modules.product_catalog.presentation.api.schemas import (
    ProductCreateRequest,
    ProductResponse,
    ProductUpdateRequest,
    UserSyncRequest,
)
from app.modules.product_catalog.presentation.dependencies import (
    get_consistency_coordinator,
    get_product_service,
    get_user_status_oracle,
)
from app.shared.core.dependencies import (
    CurrentUser,
    ServiceCaller,
    get_current_user,
    get_service_caller_or_user,
)
from app.shared.core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

products_router = APIRouter()


@products_router.api_route(
    "/sync-user/{user_id}",
    methods=["POST", "PUT"],
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Synchronize a user's status to their products",
    responses={
        401: {"description": "Missing or invalid credentials"},
        403: {"description": "Caller may not sync this user, or the user is not active"},
        503: {"description": "User service unavailable"},
    },
)
async def sync_user_status(
    user_id: UUID,
    sync_data: UserSyncRequest,
    caller: Union[ServiceCaller, CurrentUser] = Depends(get_service_caller_or_user),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
    user_status_oracle: UserStatusOracle = Depends(get_user_status_oracle),
) -> Response:
    """
    Push entry point equivalent to the user.status_changed event.

    A bearer token outlives a deactivation, so user callers may only restore
    products once the user service confirms the account is active again.
    """
    if isinstance(caller, CurrentUser):
        if not caller.can_access(user_id):
            raise AuthorizationError("Not allowed to sync this user", resource_type="User", resource_id=str(user_id))
        if sync_data.is_active:
            await user_status_oracle.ensure_active(user_id, caller.token)

    await coordinator.sync_user_status(user_id, sync_data.is_active)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@products_router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
    responses={
        400: {"description": "Invalid product data"},
        403: {"description": "Owner account inactive or inaccessible"},
        503: {"description": "User service unavailable"},
    },
)
async def create_product(
    product_data: ProductCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    product = await product_service.create_product(
        current_user.user_id,
        product_data.model_dump(),
        current_user.token,
    )
    return ProductResponse.from_domain(product)


@products_router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get a product",
    responses={404: {"description": "Product not found"}},
)
async def get_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    product = await product_service.get_product(product_id)
    return ProductResponse.from_domain(product)


@products_router.get(
    "",
    response_model=List[ProductResponse],
    summary="List products",
    responses={403: {"description": "includeDeleted requires the Admin role"}},
)
async def list_products(
    search_term: Optional[str] = Query(default=None, alias="searchTerm"),
    min_price: Optional[Decimal] = Query(default=None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(default=None, alias="maxPrice"),
    is_available: Optional[bool] = Query(default=None, alias="isAvailable"),
    user_id: Optional[UUID] = Query(default=None, alias="userId"),
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service),
) -> List[ProductResponse]:
    product_filter = ProductFilter(
        search_term=search_term,
        min_price=min_price,
        max_price=max_price,
        is_available=is_available,
        user_id=user_id,
        include_deleted=include_deleted,
        limit=limit,
        offset=offset,
    )
    products = await product_service.list_products(product_filter, current_user)
    return [ProductResponse.from_domain(p) for p in products]


@products_router.put(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Update an owned product",
    responses={
        400: {"description": "Invalid product data"},
        403: {"description": "Not the owner"},
        404: {"description": "Product not found"},
    },
)
async def update_product(
    product_id: UUID,
    update_data: ProductUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service),
) -> Response:
    await product_service.update_product(
        product_id,
        current_user.user_id,
        update_data.model_dump(exclude_unset=True),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@products_router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Soft delete an owned product",
    responses={
        403: {"description": "Not the owner"},
        404: {"description": "Product not found"},
    },
)
async def delete_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service),
) -> Response:
    await product_service.delete_product(product_id, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
