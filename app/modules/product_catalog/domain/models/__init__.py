"""
Product domain models and field validation.
"""

from .product import DeletionReason, Product, ProductFilter

__all__ = ["DeletionReason", "Product", "ProductFilter"]
