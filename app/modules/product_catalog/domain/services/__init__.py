"""
Product catalog domain services.
"""

from .consistency_coordinator import ConsistencyCoordinator
from .product_service import ProductService
from .user_status_oracle import UserStatusOracle

__all__ = ["ConsistencyCoordinator", "ProductService", "UserStatusOracle"]
