"""Unit tests for the Redis message broker against an in-process Redis double."""

import asyncio
import json
import uuid

import fakeredis.aioredis
import pytest

from app.shared.events import (
    USER_DELETED_ROUTING_KEY,
    Message,
    RetryPolicy,
    UserDeletedEvent,
    serialize_event,
)
from app.shared.events.redis_broker import RedisMessageBroker

EXCHANGE = "user_events"
QUEUE = "product_service.user_events"


async def wait_until(condition, timeout=5.0):
    async def _poll():
        while not await condition():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def redis_client():
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
async def make_broker(redis_client):
    brokers = []

    def _make_broker(broker_class=RedisMessageBroker, max_attempts=3):
        broker = broker_class(
            "redis://fake",
            retry_policy=RetryPolicy(max_attempts=max_attempts, base_delay=0, max_delay=0),
            client=redis_client,
        )
        brokers.append(broker)
        return broker

    yield _make_broker
    for broker in brokers:
        await broker.stop()


async def queues_empty(broker, redis_client):
    pending = await redis_client.llen(broker._queue_key(QUEUE))
    processing = await redis_client.llen(broker._processing_key(QUEUE))
    return pending == 0 and processing == 0


class TestRedisDelivery:

    async def test_handled_message_is_acknowledged(self, make_broker, redis_client):
        broker = make_broker()
        received = []

        async def handler(event):
            received.append(event.user_id)

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await broker.start()
        user_id = uuid.uuid4()
        routed = await broker.publish(UserDeletedEvent(user_id=user_id), EXCHANGE, USER_DELETED_ROUTING_KEY)

        async def handled():
            return received == [user_id] and await queues_empty(broker, redis_client)

        await wait_until(handled)
        assert routed == 1
        assert broker.get_stats()["processed"] == 1
        assert await broker.dead_letters(QUEUE) == []

    async def test_publish_before_any_binding_is_not_routed(self, make_broker):
        broker = make_broker()
        routed = await broker.publish(UserDeletedEvent(user_id=uuid.uuid4()), EXCHANGE, USER_DELETED_ROUTING_KEY)
        assert routed == 0

    async def test_failing_handler_is_dead_lettered_after_retries(self, make_broker, redis_client):
        broker = make_broker()
        calls = []

        async def always_fails(event):
            calls.append(event.event_id)
            raise RuntimeError("product database unavailable")

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, always_fails)
        await broker.start()
        event = UserDeletedEvent(user_id=uuid.uuid4())
        await broker.publish(event, EXCHANGE, USER_DELETED_ROUTING_KEY)

        async def dead_lettered():
            return len(await broker.dead_letters(QUEUE)) == 1 and await queues_empty(broker, redis_client)

        await wait_until(dead_lettered)
        dead_letter = (await broker.dead_letters(QUEUE))[0]
        assert len(calls) == 3
        assert dead_letter.message.attempts == 3
        assert "product database unavailable" in dead_letter.error
        assert json.loads(dead_letter.message.body)["event_id"] == str(event.event_id)
        assert await redis_client.llen(f"broker:dead-letter:{QUEUE}") == 1

    async def test_failed_dead_letter_handoff_requeues_message(self, make_broker, redis_client):
        class FlakyDeadLetterBroker(RedisMessageBroker):
            handoff_failures = 1

            async def _store_dead_letter(self, dead_letter):
                if self.handoff_failures:
                    self.handoff_failures -= 1
                    raise ConnectionError("dead-letter store unavailable")
                await super()._store_dead_letter(dead_letter)

        broker = make_broker(FlakyDeadLetterBroker, max_attempts=2)
        calls = []

        async def always_fails(event):
            calls.append(event.event_id)
            raise RuntimeError("nope")

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, always_fails)
        await broker.start()
        await broker.publish(UserDeletedEvent(user_id=uuid.uuid4()), EXCHANGE, USER_DELETED_ROUTING_KEY)

        async def dead_lettered():
            return len(await broker.dead_letters(QUEUE)) == 1 and await queues_empty(broker, redis_client)

        await wait_until(dead_lettered)
        assert len(calls) == 4

    async def test_unreadable_envelope_is_dead_lettered_and_consuming_continues(self, make_broker, redis_client):
        broker = make_broker()
        received = []

        async def handler(event):
            received.append(event.user_id)

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await broker.start()
        await redis_client.lpush(broker._queue_key(QUEUE), "not an envelope")
        await redis_client.lpush(broker._queue_key(QUEUE), json.dumps([1, 2]))
        user_id = uuid.uuid4()
        await broker.publish(UserDeletedEvent(user_id=user_id), EXCHANGE, USER_DELETED_ROUTING_KEY)

        async def handled():
            return received == [user_id] and await queues_empty(broker, redis_client)

        await wait_until(handled)
        bodies = sorted(d.message.body for d in await broker.dead_letters(QUEUE))
        assert bodies == sorted(["not an envelope", "[1, 2]"])

    async def test_non_object_event_body_is_dead_lettered(self, make_broker, redis_client):
        broker = make_broker()
        received = []

        async def handler(event):
            received.append(event.user_id)

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await broker.start()
        await broker._route(Message(exchange=EXCHANGE, routing_key=USER_DELETED_ROUTING_KEY, body="null"))
        user_id = uuid.uuid4()
        await broker.publish(UserDeletedEvent(user_id=user_id), EXCHANGE, USER_DELETED_ROUTING_KEY)

        async def handled():
            return received == [user_id] and await queues_empty(broker, redis_client)

        await wait_until(handled)
        assert [d.message.body for d in await broker.dead_letters(QUEUE)] == ["null"]


class TestRedisRecovery:

    async def test_message_left_in_processing_list_is_redelivered_on_start(self, make_broker, redis_client):
        broker = make_broker()
        received = []

        async def handler(event):
            received.append(event.user_id)

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)

        # a previous consumer took the message but never acknowledged it
        user_id = uuid.uuid4()
        stranded = Message(
            exchange=EXCHANGE,
            routing_key=USER_DELETED_ROUTING_KEY,
            body=serialize_event(UserDeletedEvent(user_id=user_id)),
        )
        await redis_client.lpush(broker._processing_key(QUEUE), json.dumps(stranded.to_dict()))

        await broker.start()

        async def handled():
            return received == [user_id] and await queues_empty(broker, redis_client)

        await wait_until(handled)

    async def test_requeue_moves_every_unacknowledged_message(self, make_broker, redis_client):
        broker = make_broker()
        for body in ("a", "b", "c"):
            await redis_client.lpush(broker._processing_key(QUEUE), body)

        moved = await broker._requeue_unacknowledged(QUEUE)

        assert moved == 3
        assert await redis_client.llen(broker._processing_key(QUEUE)) == 0
        assert await redis_client.lrange(broker._queue_key(QUEUE), 0, -1) == ["a", "b", "c"]

    async def test_start_declares_bindings(self, make_broker, redis_client):
        broker = make_broker()

        async def handler(event):
            pass

        broker.subscribe(EXCHANGE, QUEUE, USER_DELETED_ROUTING_KEY, handler)
        await broker.start()

        assert await redis_client.smembers(broker._binding_key(EXCHANGE, USER_DELETED_ROUTING_KEY)) == {QUEUE}
