# 📄 File: app/modules/product_catalog/application/handlers/user_lifecycle_handlers.py
# 🧭 Purpose (Layman Explanation):
# Listens for "account deleted" and "account switched on/off" announcements from the user
# service and hides or brings back that person's products.
#
# 🧪 Purpose (Technical Summary):
# Idempotent consumers for user lifecycle integration events, registered exactly once on the
# process-wide broker from the product service lifespan. Failures are raised as
# EventProcessingError so the broker retries and finally dead-letters the message.
#
# 🔗 Dependencies:
# - app.shared.events (broker, event types, routing keys)
# - app.modules.product_catalog.domain.services.consistency_coordinator
#
# 🔄 Connected Modules / Calls From:
# - app.main (product service lifespan)

import logging
from typing import List

from app.shared.config.settings import Settings
from app.shared.core.exceptions import EventProcessingError
from app.shared.events import (
    USER_DELETED_ROUTING_KEY,
    USER_STATUS_CHANGED_ROUTING_KEY,
    MessageBroker,
    UserDeletedEvent,
    UserStatusChangedEvent,
)
from app.shared.events.broker import Subscription

from ...domain.services.consistency_coordinator import ConsistencyCoordinator

logger = logging.getLogger(__name__)


class UserLifecycleConsumer:
    """
    Applies user lifecycle events to the product catalog.
    Redelivery of an already applied event changes nothing.
    """

    def __init__(self, coordinator: ConsistencyCoordinator):
        self.coordinator = coordinator

    async def handle_user_deleted(self, event: UserDeletedEvent) -> None:
        logger.info(f"Received user deletion for {event.user_id}")
        try:
            await self.coordinator.deactivate_all(event.user_id)
        except Exception as e:
            raise EventProcessingError(
                f"Failed to deactivate products of user {event.user_id}: {e}",
                event_type=event.event_type,
                event_id=str(event.event_id),
            ) from e

    async def handle_user_status_changed(self, event: UserStatusChangedEvent) -> None:
        logger.info(f"Received status change for {event.user_id}: active={event.is_active}")
        try:
            await self.coordinator.sync_user_status(event.user_id, event.is_active)
        except Exception as e:
            raise EventProcessingError(
                f"Failed to sync products of user {event.user_id}: {e}",
                event_type=event.event_type,
                event_id=str(event.event_id),
            ) from e


def register_user_lifecycle_consumers(
    broker: MessageBroker,
    coordinator: ConsistencyCoordinator,
    settings: Settings,
) -> List[Subscription]:
    """
    Subscribe the product service queue to both user lifecycle routing keys.

    Called once per process from the application lifespan.
    """
    consumer = UserLifecycleConsumer(coordinator)
    subscriptions = [
        broker.subscribe(
            settings.EVENT_EXCHANGE,
            settings.PRODUCT_EVENT_QUEUE,
            USER_DELETED_ROUTING_KEY,
            consumer.handle_user_deleted,
        ),
        broker.subscribe(
            settings.EVENT_EXCHANGE,
            settings.PRODUCT_EVENT_QUEUE,
            USER_STATUS_CHANGED_ROUTING_KEY,
            consumer.handle_user_status_changed,
        ),
    ]
    logger.info(f"User lifecycle consumers registered on queue {settings.PRODUCT_EVENT_QUEUE}")
    return subscriptions
