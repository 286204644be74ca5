"""
User domain models.
"""

from .user import User, UserRole

__all__ = ["User", "UserRole"]
