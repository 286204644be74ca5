"""Unit tests for the in-memory message broker delivery path."""

import asyncio
import uuid

import pytest

from app.shared.config.settings import Settings
from app.shared.events import (
    USER_DELETED_ROUTING_KEY,
    USER_STATUS_CHANGED_ROUTING_KEY,
    InMemoryMessageBroker,
    Message,
    RetryPolicy,
    UnknownEventError,
    UserDeletedEvent,
    UserStatusChangedEvent,
    create_message_broker,
    deserialize_event,
    serialize_event,
)
from app.shared.events.redis_broker import RedisMessageBroker

EXCHANGE = "user_events"
QUEUE = "product_service.user_events"


@pytest.fixture
async def fast_broker():
    broker = InMemoryMessageBroker(RetryPolicy(max_attempts=3, base_delay=0, max_delay=0))
    yield broker
    await broker.stop()


class TestEventSerialization:

    def test_payload_carries_event_type(self):
        event = UserStatusChangedEvent(user_id=uuid.uuid4(), is_active=False)
        decoded = deserialize_event(serialize_event(event))
        assert isinstance(decoded, UserStatusChangedEvent)
        assert decoded.event_id == event.event_id
        assert decoded.is_active is False

    def test_unknown_event_type_is_rejected(self):
        with pytest.raises(UnknownEventError):
            deserialize_event('{"event_type": "user.renamed", "user_id": "x"}')

    @pytest.mark.parametrize("body", ["[1, 2]", "null", "\"x\"", "42"])
    def test_non_object_payload_is_rejected(self, body):
        with pytest.raises(UnknownEventError):
            deserialize_event(body)


class TestDelivery:
    """Publish, retry, acknowledge and dead-letter."""

    async def test_published_event_reaches_handler(self, fast_broker):
        received = []

        async def handler(event):
            received.append(event)

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await fast_broker.start()

        user_id = uuid.uuid4()
        routed = await fast_broker.publish(UserDeletedEvent(user_id=user_id), EXCHANGE, USER_DELETED_ROUTING_KEY)
        await fast_broker.drain()

        assert routed == 1
        assert [e.user_id for e in received] == [user_id]
        assert fast_broker.get_stats()["processed"] == 1

    async def test_unbound_routing_key_is_not_routed(self, fast_broker):
        routed = await fast_broker.publish(
            UserDeletedEvent(user_id=uuid.uuid4()), EXCHANGE, USER_DELETED_ROUTING_KEY
        )
        assert routed == 0

    async def test_transient_failure_is_retried(self, fast_broker):
        calls = []

        async def flaky(event):
            calls.append(event.event_id)
            if len(calls) < 3:
                raise RuntimeError("database is down")

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, flaky)
        await fast_broker.start()
        await fast_broker.publish(UserDeletedEvent(user_id=uuid.uuid4()), EXCHANGE, USER_DELETED_ROUTING_KEY)
        await fast_broker.drain()

        assert len(calls) == 3
        assert await fast_broker.dead_letters(QUEUE) == []
        assert fast_broker.get_stats()["retries"] == 2

    async def test_exhausted_message_is_dead_lettered_and_acknowledged(self, fast_broker):
        calls = []

        async def always_fails(event):
            calls.append(event.event_id)
            raise RuntimeError("still failing")

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, always_fails)
        await fast_broker.start()
        event = UserDeletedEvent(user_id=uuid.uuid4())
        await fast_broker.publish(event, EXCHANGE, USER_DELETED_ROUTING_KEY)
        await fast_broker.drain()

        dead_letters = await fast_broker.dead_letters(QUEUE)
        assert len(calls) == 3
        assert len(dead_letters) == 1
        assert dead_letters[0].message.attempts == 3
        assert "still failing" in dead_letters[0].error
        assert deserialize_event(dead_letters[0].message.body).event_id == event.event_id

    async def test_poison_message_is_dead_lettered_without_handler_call(self, fast_broker):
        calls = []

        async def handler(event):
            calls.append(event)

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await fast_broker.start()
        await fast_broker._route(Message(exchange=EXCHANGE, routing_key=USER_DELETED_ROUTING_KEY, body="{not json"))
        await fast_broker.drain()

        assert calls == []
        assert len(await fast_broker.dead_letters(QUEUE)) == 1

    @pytest.mark.parametrize("body", ["[1, 2]", "null", "\"x\""])
    async def test_consumer_survives_non_object_payload(self, fast_broker, body):
        calls = []

        async def handler(event):
            calls.append(event.user_id)

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await fast_broker.start()
        await fast_broker._route(Message(exchange=EXCHANGE, routing_key=USER_DELETED_ROUTING_KEY, body=body))
        user_id = uuid.uuid4()
        await fast_broker.publish(UserDeletedEvent(user_id=user_id), EXCHANGE, USER_DELETED_ROUTING_KEY)
        await asyncio.wait_for(fast_broker.drain(), timeout=5)

        assert calls == [user_id]
        dead_letters = await fast_broker.dead_letters(QUEUE)
        assert [d.message.body for d in dead_letters] == [body]

    async def test_unexpected_delivery_error_dead_letters_and_keeps_consuming(self):
        class BrokenOnceBroker(InMemoryMessageBroker):
            broken = True

            async def _deliver(self, queue, message):
                if self.broken:
                    self.broken = False
                    raise AttributeError("unexpected")
                return await super()._deliver(queue, message)

        broker = BrokenOnceBroker(RetryPolicy(max_attempts=2, base_delay=0, max_delay=0))
        calls = []

        async def handler(event):
            calls.append(event.event_id)

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await broker.start()
        try:
            await broker.publish(UserDeletedEvent(user_id=uuid.uuid4()), EXCHANGE, USER_DELETED_ROUTING_KEY)
            second = UserDeletedEvent(user_id=uuid.uuid4())
            await broker.publish(second, EXCHANGE, USER_DELETED_ROUTING_KEY)
            await asyncio.wait_for(broker.drain(), timeout=5)
        finally:
            await broker.stop()

        assert calls == [second.event_id]
        dead_letters = await broker.dead_letters(QUEUE)
        assert len(dead_letters) == 1
        assert "AttributeError" in dead_letters[0].error

    async def test_failed_dead_letter_handoff_keeps_message_queued(self):
        class FlakyDeadLetterBroker(InMemoryMessageBroker):
            handoff_failures = 1

            async def _store_dead_letter(self, dead_letter):
                if self.handoff_failures:
                    self.handoff_failures -= 1
                    raise ConnectionError("dead-letter store unavailable")
                await super()._store_dead_letter(dead_letter)

        broker = FlakyDeadLetterBroker(RetryPolicy(max_attempts=2, base_delay=0, max_delay=0))
        calls = []

        async def always_fails(event):
            calls.append(event.event_id)
            raise RuntimeError("nope")

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, always_fails)
        await broker.start()
        try:
            await broker.publish(UserDeletedEvent(user_id=uuid.uuid4()), EXCHANGE, USER_DELETED_ROUTING_KEY)
            await broker.drain()
        finally:
            await broker.stop()

        # first handoff failed, so the message was delivered a second time
        assert len(calls) == 4
        assert len(await broker.dead_letters(QUEUE)) == 1

    async def test_single_worker_preserves_order(self, fast_broker):
        seen = []

        async def deleted(event):
            seen.append(("deleted", event.user_id))

        async def status_changed(event):
            seen.append(("status", event.user_id, event.is_active))

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, deleted)
        fast_broker.subscribe(EXCHANGE, QUEUE, USER_STATUS_CHANGED_ROUTING_KEY, status_changed)
        await fast_broker.start()

        user_id = uuid.uuid4()
        await fast_broker.publish(
            UserStatusChangedEvent(user_id=user_id, is_active=False), EXCHANGE, USER_STATUS_CHANGED_ROUTING_KEY
        )
        await fast_broker.publish(UserDeletedEvent(user_id=user_id), EXCHANGE, USER_DELETED_ROUTING_KEY)
        await fast_broker.publish(
            UserStatusChangedEvent(user_id=user_id, is_active=True), EXCHANGE, USER_STATUS_CHANGED_ROUTING_KEY
        )
        await fast_broker.drain()

        assert seen == [
            ("status", user_id, False),
            ("deleted", user_id),
            ("status", user_id, True),
        ]


class TestSubscriptions:

    async def test_duplicate_subscription_is_rejected(self, fast_broker):
        async def handler(event):
            pass

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        with pytest.raises(ValueError):
            fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)

    async def test_subscriptions_are_listed(self, fast_broker):
        async def handler(event):
            pass

        fast_broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        assert fast_broker.get_subscriptions() == [
            {
                "exchange": EXCHANGE,
                "queue": QUEUE,
                "routing_key": USER_DELETED_ROUTING_KEY,
                "handler": handler.__qualname__,
            }
        ]


class TestBrokerFactory:

    def test_memory_backend_by_default(self):
        broker = create_message_broker(Settings(EVENT_BROKER="memory"))
        assert isinstance(broker, InMemoryMessageBroker)

    def test_redis_backend(self):
        broker = create_message_broker(Settings(EVENT_BROKER="redis", REDIS_URL="redis://localhost:6399/0"))
        assert isinstance(broker, RedisMessageBroker)
        assert broker._dead_letter_key(QUEUE) == f"broker:dead-letter:{QUEUE}"

    def test_retry_policy_from_settings(self):
        broker = create_message_broker(Settings(EVENT_MAX_RETRIES=7, EVENT_RETRY_BASE_DELAY=0.1))
        assert broker.retry_policy.max_attempts == 7
        assert broker.retry_policy.base_delay == 0.1
