"""
Consumers for user lifecycle events.
"""

from .user_lifecycle_handlers import UserLifecycleConsumer, register_user_lifecycle_consumers

__all__ = ["UserLifecycleConsumer", "register_user_lifecycle_consumers"]
