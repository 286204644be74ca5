# 📄 File: app/modules/product_catalog/domain/models/product.py
# 🧭 Purpose (Layman Explanation):
# Defines what a product is - its name, price, owner and whether it is hidden - plus the
# search options people can use when browsing the catalog.
# 🧪 Purpose (Technical Summary):
# Product domain entity with soft-delete bookkeeping (who hid it: the owner, or the
# system because the owner became inactive) and the ProductFilter query object.
# 🔗 Dependencies:
# pydantic, decimal, datetime, uuid, app.shared.core.exceptions
# 🔄 Connected Modules / Calls From:
# product_service.py, consistency_coordinator.py, product_repository.py, product_repository_impl.py

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.shared.core.exceptions import ValidationError

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000


class DeletionReason(str, Enum):
    """Why a product is soft-deleted"""
    OWNER = "owner"                    # owner deleted it
    OWNER_INACTIVE = "owner_inactive"  # owner was deactivated or deleted


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(BaseModel):
    """
    Product domain model.

    `user_id` is a weak reference to the owning account in the user service;
    no foreign key spans the two databases.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    description: Optional[str] = None
    price: Decimal
    is_available: bool = True
    user_id: uuid.UUID

    is_deleted: bool = False
    deletion_reason: Optional[DeletionReason] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None


class ProductFilter(BaseModel):
    """
    Catalog query. Every criterion is optional and they combine with AND.
    """

    search_term: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    is_available: Optional[bool] = None
    user_id: Optional[uuid.UUID] = None
    include_deleted: bool = False
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


# =========================================================================
# VALIDATION
# =========================================================================

def validate_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required", field="name")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be at most {NAME_MAX_LENGTH} characters", field="name")
    return name


def validate_description(description: Optional[str]) -> Optional[str]:
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )
    return description


def validate_price(price: Any) -> Decimal:
    try:
        value = Decimal(str(price))
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError("Price must be a number", field="price")
    if not value.is_finite() or value <= 0:
        raise ValidationError("Price must be greater than 0", field="price")
    return value


def validate_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a partial update. Keys that are missing or None are dropped so the
    stored values are kept.
    """
    validated: Dict[str, Any] = {}
    if changes.get("name") is not None:
        validated["name"] = validate_name(changes["name"])
    if changes.get("description") is not None:
        validated["description"] = validate_description(changes["description"])
    if changes.get("price") is not None:
        validated["price"] = validate_price(changes["price"])
    if changes.get("is_available") is not None:
        validated["is_available"] = bool(changes["is_available"])
    return validated
