# 📄 File: app/shared/events/base.py

# 🧭 Purpose (Layman Explanation):
# This file defines the messages one service sends to another when something important
# happens to a user account, such as the account being deleted or switched off.

# 🧪 Purpose (Technical Summary):
# Integration event models (pydantic) shared by publisher and consumer services, an
# event-type registry and JSON (de)serialization for the message broker wire format.

# 🔗 Dependencies:
# - pydantic: Event models and JSON serialization
# - uuid / datetime: Event ids and timestamps

# 🔄 Connected Modules / Calls From:
# Used by: user_management services (publishing), product_catalog consumers,
# message brokers (envelope encoding)

import json
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Type, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

USER_EVENTS_EXCHANGE = "user_events"
USER_DELETED_ROUTING_KEY = "user.deleted"
USER_STATUS_CHANGED_ROUTING_KEY = "user.status_changed"


class UnknownEventError(ValueError):
    """Raised when a payload cannot be turned into a registered event."""


class IntegrationEvent(BaseModel):
    """
    Base class for events crossing service boundaries.

    Subclasses set `event_name`; it is written to the payload as `event_type`
    and used to pick the model when decoding.
    """

    model_config = ConfigDict(frozen=True)

    event_name: ClassVar[str] = "integration_event"

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_type(self) -> str:
        return self.event_name

    def to_payload(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["event_type"] = self.event_name
        return data


class UserDeletedEvent(IntegrationEvent):
    """A user account was soft-deleted. Carries only the user id."""

    event_name: ClassVar[str] = USER_DELETED_ROUTING_KEY

    user_id: UUID


class UserStatusChangedEvent(IntegrationEvent):
    """A user account was deactivated, reactivated or restored."""

    event_name: ClassVar[str] = USER_STATUS_CHANGED_ROUTING_KEY

    user_id: UUID
    is_active: bool


EVENT_TYPES: Dict[str, Type[IntegrationEvent]] = {
    UserDeletedEvent.event_name: UserDeletedEvent,
    UserStatusChangedEvent.event_name: UserStatusChangedEvent,
}


def serialize_event(event: IntegrationEvent) -> str:
    return json.dumps(event.to_payload())


def deserialize_event(payload: Union[str, bytes, Dict[str, Any]]) -> IntegrationEvent:
    """
    Decode a broker payload into its registered event model.

    Raises:
        UnknownEventError: If the payload is malformed or its type is not registered
    """
    try:
        data = json.loads(payload) if isinstance(payload, (str, bytes)) else dict(payload)
    except (TypeError, ValueError) as e:
        raise UnknownEventError(f"Malformed event payload: {e}") from e
    if not isinstance(data, dict):
        raise UnknownEventError(f"Event payload must be a JSON object, got {type(data).__name__}")

    event_type = data.pop("event_type", None)
    model = EVENT_TYPES.get(event_type)
    if model is None:
        raise UnknownEventError(f"Unregistered event type: {event_type!r}")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise UnknownEventError(f"Invalid {event_type} payload: {e}") from e
