# 📄 File: app/shared/events/redis_broker.py

# 🧭 Purpose (Layman Explanation):
# A message broker backed by Redis so the user service and the product service can run as
# separate processes and still hear about each other's account changes, even across restarts.

# 🧪 Purpose (Technical Summary):
# Redis lists as durable queues with a per-queue processing list for at-least-once delivery
# (BLMOVE then LREM on acknowledgement), Redis sets for (exchange, routing key) bindings and
# per-queue dead-letter lists.

# 🔗 Dependencies:
# - redis.asyncio: Async Redis client
# - app.shared.events.broker: Delivery, retry and dead-letter logic

# 🔄 Connected Modules / Calls From:
# Used by: app.shared.events.get_message_broker when EVENT_BROKER=redis

import asyncio
import json
import logging
from typing import Dict, List, Optional

import redis.asyncio as redis
from redis.asyncio import Redis

from .broker import DeadLetter, Message, MessageBroker, RetryPolicy, Subscription

logger = logging.getLogger(__name__)


class RedisMessageBroker(MessageBroker):
    """
    Broker on Redis lists.

    Keys:
        <prefix>:bindings:<exchange>:<routing_key>  set of queue names
        <prefix>:queue:<queue>                      pending messages
        <prefix>:processing:<queue>                 delivered, not yet acknowledged
        <prefix>:dead-letter:<queue>                dead letters
    """

    def __init__(
        self,
        redis_url: str,
        retry_policy: Optional[RetryPolicy] = None,
        workers_per_queue: int = 1,
        key_prefix: str = "broker",
        poll_timeout: int = 1,
        client: Optional[Redis] = None,
    ):
        super().__init__(retry_policy)
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.poll_timeout = poll_timeout
        self.workers_per_queue = max(1, workers_per_queue)
        self._client: Redis = client or redis.from_url(redis_url, decode_responses=True)
        self._queues: Dict[str, List[Subscription]] = {}
        self._workers: List[asyncio.Task] = []

    # =========================================================================
    # KEYS
    # =========================================================================

    def _binding_key(self, exchange: str, routing_key: str) -> str:
        return f"{self.key_prefix}:bindings:{exchange}:{routing_key}"

    def _queue_key(self, queue: str) -> str:
        return f"{self.key_prefix}:queue:{queue}"

    def _processing_key(self, queue: str) -> str:
        return f"{self.key_prefix}:processing:{queue}"

    def _dead_letter_key(self, queue: str) -> str:
        return f"{self.key_prefix}:dead-letter:{queue}"

    # =========================================================================
    # ROUTING
    # =========================================================================

    def _on_subscribe(self, subscription: Subscription) -> None:
        self._queues.setdefault(subscription.queue, []).append(subscription)

    async def _declare_bindings(self) -> None:
        async with self._client.pipeline(transaction=True) as pipe:
            for subscriptions in self._queues.values():
                for s in subscriptions:
                    pipe.sadd(self._binding_key(s.exchange, s.routing_key), s.queue)
            await pipe.execute()

    async def _route(self, message: Message) -> int:
        queues = await self._client.smembers(self._binding_key(message.exchange, message.routing_key))
        if not queues:
            return 0
        payload = json.dumps(message.to_dict())
        async with self._client.pipeline(transaction=True) as pipe:
            for name in queues:
                pipe.lpush(self._queue_key(name), payload)
            await pipe.execute()
        return len(queues)

    async def _store_dead_letter(self, dead_letter: DeadLetter) -> None:
        await self._client.lpush(self._dead_letter_key(dead_letter.queue), json.dumps(dead_letter.to_dict()))

    async def dead_letters(self, queue: str) -> List[DeadLetter]:
        raw = await self._client.lrange(self._dead_letter_key(queue), 0, -1)
        return [DeadLetter.from_dict(json.loads(item)) for item in raw]

    # =========================================================================
    # CONSUMING
    # =========================================================================

    async def _requeue_unacknowledged(self, queue: str) -> int:
        """Move messages left in the processing list by a crashed consumer back to the queue."""
        moved = 0
        while await self._client.lmove(self._processing_key(queue), self._queue_key(queue), "RIGHT", "RIGHT"):
            moved += 1
        if moved:
            logger.warning(f"Requeued {moved} unacknowledged message(s) on {queue}")
        return moved

    async def start(self) -> None:
        if self._running:
            return
        await self._declare_bindings()
        for name in self._queues:
            await self._requeue_unacknowledged(name)
        self._running = True
        self._workers = [
            asyncio.create_task(self._consume(name), name=f"consumer:{name}:{i}")
            for name in self._queues
            for i in range(self.workers_per_queue)
        ]
        logger.info(f"Redis message broker started with {len(self._queues)} queue(s)")

    def _decode_envelope(self, raw: str) -> Optional[Message]:
        try:
            return Message.from_dict(json.loads(raw))
        except (TypeError, ValueError) as e:
            logger.error(f"Unreadable message envelope: {e!r}")
            return None

    async def _consume(self, queue: str) -> None:
        queue_key = self._queue_key(queue)
        processing_key = self._processing_key(queue)
        while self._running:
            try:
                raw = await self._client.blmove(queue_key, processing_key, self.poll_timeout, "RIGHT", "LEFT")
            except redis.RedisError as e:
                logger.error(f"Redis unavailable while consuming {queue}: {e}")
                await asyncio.sleep(self.retry_policy.base_delay or 1)
                continue
            if raw is None:
                continue

            message = self._decode_envelope(raw)
            if message is None:
                acknowledged = await self._hand_off(
                    queue, Message(exchange="", routing_key="", body=raw), "Unreadable message envelope"
                )
            else:
                acknowledged = await self._process(queue, message)

            try:
                if acknowledged:
                    await self._client.lrem(processing_key, 1, raw)
                else:
                    # leave it for redelivery
                    async with self._client.pipeline(transaction=True) as pipe:
                        pipe.lrem(processing_key, 1, raw)
                        pipe.rpush(queue_key, json.dumps(message.to_dict()) if message else raw)
                        await pipe.execute()
            except redis.RedisError as e:
                # still in the processing list, requeued on the next start
                logger.error(f"Could not acknowledge message on {queue}: {e}")

    async def stop(self) -> None:
        if self._running:
            self._running = False
            for task in self._workers:
                task.cancel()
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers.clear()
        await self._client.aclose()
        logger.info("Redis message broker stopped")
