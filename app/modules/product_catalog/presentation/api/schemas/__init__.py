"""
Product Catalog API Schemas
"""

from .product_schemas import (
    ProductCreateRequest,
    ProductResponse,
    ProductUpdateRequest,
    UserSyncRequest,
)

__all__ = [
    "ProductCreateRequest",
    "ProductResponse",
    "ProductUpdateRequest",
    "UserSyncRequest",
]
