# 📄 File: app/shared/events/__init__.py

# 🧭 Purpose (Layman Explanation):
# This package lets the user service tell the product service about account changes
# without calling it directly, like leaving a note in a shared mailbox.

# 🧪 Purpose (Technical Summary):
# Integration events and the process-wide message broker (in-memory or Redis), created
# from settings on first use and shut down with the application.

# 🔗 Dependencies:
# - base: Integration event models and serialization
# - broker: Broker abstraction, retry / dead-letter delivery, in-memory backend
# - redis_broker: Redis backend

# 🔄 Connected Modules / Calls From:
# Used by: app.main lifespans, user_management services (publishing),
# product_catalog consumers (subscribing)

"""
Integration Events System
"""

import logging
from typing import Optional

from app.shared.config.settings import Settings, get_settings

from .base import (
    EVENT_TYPES,
    USER_DELETED_ROUTING_KEY,
    USER_EVENTS_EXCHANGE,
    USER_STATUS_CHANGED_ROUTING_KEY,
    IntegrationEvent,
    UnknownEventError,
    UserDeletedEvent,
    UserStatusChangedEvent,
    deserialize_event,
    serialize_event,
)
from .broker import DeadLetter, InMemoryMessageBroker, Message, MessageBroker, RetryPolicy

logger = logging.getLogger(__name__)

_message_broker: Optional[MessageBroker] = None


def create_message_broker(settings: Settings) -> MessageBroker:
    """Build the broker selected by EVENT_BROKER."""
    retry_policy = RetryPolicy(
        max_attempts=settings.EVENT_MAX_RETRIES,
        base_delay=settings.EVENT_RETRY_BASE_DELAY,
        max_delay=settings.EVENT_RETRY_MAX_DELAY,
    )
    if settings.EVENT_BROKER == "redis":
        from .redis_broker import RedisMessageBroker

        return RedisMessageBroker(
            settings.REDIS_URL,
            retry_policy=retry_policy,
            workers_per_queue=settings.EVENT_WORKERS,
        )
    return InMemoryMessageBroker(retry_policy=retry_policy, workers_per_queue=settings.EVENT_WORKERS)


def get_message_broker() -> MessageBroker:
    """Get the process-wide message broker, creating it on first use."""
    global _message_broker
    if _message_broker is None:
        _message_broker = create_message_broker(get_settings())
        logger.info(f"Message broker created: {type(_message_broker).__name__}")
    return _message_broker


def set_message_broker(broker: Optional[MessageBroker]) -> None:
    """Replace the process-wide broker (tests, custom wiring)."""
    global _message_broker
    _message_broker = broker


async def shutdown_message_broker() -> None:
    global _message_broker
    if _message_broker is not None:
        await _message_broker.stop()
        _message_broker = None


__all__ = [
    "EVENT_TYPES",
    "USER_DELETED_ROUTING_KEY",
    "USER_EVENTS_EXCHANGE",
    "USER_STATUS_CHANGED_ROUTING_KEY",
    "DeadLetter",
    "InMemoryMessageBroker",
    "IntegrationEvent",
    "Message",
    "MessageBroker",
    "RetryPolicy",
    "UnknownEventError",
    "UserDeletedEvent",
    "UserStatusChangedEvent",
    "create_message_broker",
    "deserialize_event",
    "get_message_broker",
    "serialize_event",
    "set_message_broker",
    "shutdown_message_broker",
]
