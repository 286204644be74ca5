# 📄 File: app/modules/user_management/infrastructure/database/models.py
# 🧭 Purpose (Layman Explanation):
# This file defines how user accounts are stored in the user service database.
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy ORM model and declarative base for the user service schema. The base is
# separate from the product service so each service owns and migrates its own tables.
#
# 🔗 Dependencies:
# - SQLAlchemy ORM (DeclarativeBase, Column types)
# - UUID and datetime utilities for primary keys and timestamps
#
# 🔄 Connected Modules / Calls From:
# - user_repository_impl.py (CRUD operations)
# - migrations/env.py (autogenerate target metadata)
# - app.main (schema bootstrap in development and tests)

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Uuid, func
from sqlalchemy.orm import DeclarativeBase


class UserServiceBase(DeclarativeBase):
    """Declarative base for the user service database"""


# =============================================================================
# USER MODEL
# =============================================================================

class UserModel(UserServiceBase):
    """
    SQLAlchemy model for user accounts.
    """
    __tablename__ = "users"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        nullable=False,
        comment="Unique identifier for each user"
    )
    name = Column(String(100), nullable=False)
    email = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Lower-cased email address"
    )
    password_hash = Column(String(255), nullable=False, comment="bcrypt hash")
    role = Column(String(20), nullable=False, default="User")

    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    email_confirmed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    # Single-use tokens
    confirmation_token = Column(String(255), nullable=True, index=True)
    password_reset_token = Column(String(255), nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email}, role={self.role})>"
