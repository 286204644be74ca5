"""
Outbound integrations of the product service.
"""

from .user_service_client import UserServiceClient

__all__ = ["UserServiceClient"]
