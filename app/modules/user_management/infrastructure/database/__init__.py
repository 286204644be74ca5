"""
User service database models and repository implementation.
"""

from .models import UserModel, UserServiceBase
from .user_repository_impl import UserRepositoryImpl

__all__ = ["UserModel", "UserRepositoryImpl", "UserServiceBase"]
