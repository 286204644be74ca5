"""
Product service database models and repository implementation.
"""

from .models import ProductModel, ProductServiceBase
from .product_repository_impl import ProductRepositoryImpl

__all__ = ["ProductModel", "ProductRepositoryImpl", "ProductServiceBase"]
