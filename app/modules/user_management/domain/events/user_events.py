# 📄 File: app/modules/user_management/domain/events/user_events.py
# 🧭 Purpose (Layman Explanation):
# Announces account changes (deleted, switched off, switched back on) so the product service
# can hide or bring back that user's products.
# 🧪 Purpose (Technical Summary):
# Publisher for user lifecycle integration events on the user events exchange, keyed by
# routing key. Called only after the user change is committed.
# 🔗 Dependencies:
# app.shared.events (integration events, message broker)
# 🔄 Connected Modules / Calls From:
# UserService (delete, restore, status change), presentation dependencies

import logging
from typing import Optional
from uuid import UUID

from app.shared.events import (
    USER_DELETED_ROUTING_KEY,
    USER_EVENTS_EXCHANGE,
    USER_STATUS_CHANGED_ROUTING_KEY,
    MessageBroker,
    UserDeletedEvent,
    UserStatusChangedEvent,
)

logger = logging.getLogger(__name__)


class UserEventPublisher:
    """
    Publishes user lifecycle events.
    """

    def __init__(self, broker: MessageBroker, exchange: Optional[str] = None):
        self.broker = broker
        self.exchange = exchange or USER_EVENTS_EXCHANGE

    async def user_deleted(self, user_id: UUID) -> UserDeletedEvent:
        event = UserDeletedEvent(user_id=user_id)
        await self.broker.publish(event, self.exchange, USER_DELETED_ROUTING_KEY)
        logger.info(f"User {user_id} deletion announced (event {event.event_id})")
        return event

    async def user_status_changed(self, user_id: UUID, is_active: bool) -> UserStatusChangedEvent:
        event = UserStatusChangedEvent(user_id=user_id, is_active=is_active)
        await self.broker.publish(event, self.exchange, USER_STATUS_CHANGED_ROUTING_KEY)
        logger.info(f"User {user_id} status change announced: active={is_active} (event {event.event_id})")
        return event
