"""
User service v1 routers.
"""

from .auth import auth_router
from .users import users_router

__all__ = ["auth_router", "users_router"]
