# 📄 File: app/modules/product_catalog/presentation/api/schemas/product_schemas.py
# 🧭 Purpose (Layman Explanation):
# Defines what product data looks like when it is sent to and from the catalog API.
#
# 🧪 Purpose (Technical Summary):
# Pydantic v2 request/response schemas for the product endpoints, serialized in camelCase.
# Business rules (name length, positive price) are enforced by the domain so every caller
# gets the same validation errors.
#
# 🔗 Dependencies:
# - pydantic (validation, camelCase aliases, serializers)
# - app.modules.product_catalog.domain.models.product
#
# 🔄 Connected Modules / Calls From:
# - app.modules.product_catalog.presentation.api.v1.products

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from app.modules.product_catalog.domain.models.product import Product


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class ProductCreateRequest(CamelModel):
    name: str = Field(..., description="Product name (1-100 characters)")
    description: Optional[str] = Field(default=None, description="Optional description (max 1000 characters)")
    price: Decimal = Field(..., description="Price, greater than 0")
    is_available: bool = Field(default=True, description="Whether the product can be ordered")


class ProductUpdateRequest(CamelModel):
    """
    Partial product update. Omitted or null fields keep their stored values.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    is_available: Optional[bool] = None


class UserSyncRequest(CamelModel):
    is_active: bool = Field(..., description="Current status of the user account")


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ProductResponse(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    is_available: bool
    user_id: UUID
    is_deleted: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            is_available=product.is_available,
            user_id=product.user_id,
            is_deleted=product.is_deleted,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
