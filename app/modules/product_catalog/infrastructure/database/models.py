# 📄 File: app/modules/product_catalog/infrastructure/database/models.py
# 🧭 Purpose (Layman Explanation):
# This file defines how products are stored in the product service database.
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy ORM model and declarative base for the product service schema. `user_id` is
# indexed but carries no foreign key: the owning user lives in another service's database.
#
# 🔗 Dependencies:
# - SQLAlchemy ORM (DeclarativeBase, Column types)
#
# 🔄 Connected Modules / Calls From:
# - product_repository_impl.py (queries and conditional updates)
# - migrations/env.py (autogenerate target metadata)
# - app.main (schema bootstrap in development and tests)

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import DeclarativeBase


class ProductServiceBase(DeclarativeBase):
    """Declarative base for the product service database"""


# =============================================================================
# PRODUCT MODEL
# =============================================================================

class ProductModel(ProductServiceBase):
    """
    SQLAlchemy model for catalog products.
    """
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, comment="Owner id in the user service")

    is_deleted = Column(Boolean, nullable=False, default=False)
    deletion_reason = Column(String(20), nullable=True, comment="owner | owner_inactive")
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_products_user_id_is_deleted", "user_id", "is_deleted"),
    )

    def __repr__(self) -> str:
        return f"<ProductModel(id={self.id}, name={self.name}, user_id={self.user_id})>"
