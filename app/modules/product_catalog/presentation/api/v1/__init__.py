"""
Product service v1 routers.
"""

from .products import products_router

__all__ = ["products_router"]
