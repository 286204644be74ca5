"""
Shared v1 routes (health check).
"""

from .health import health_router

__all__ = ["health_router"]
