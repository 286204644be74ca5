"""
Integration events published by the user service.
"""

from .user_events import UserEventPublisher

__all__ = ["UserEventPublisher"]
