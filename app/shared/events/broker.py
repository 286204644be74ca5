"""
Message broker abstraction for integration events.

A logical channel is identified by (exchange, queue, routing key). Delivery is
at-least-once: every handler call is retried with exponential backoff and a
message that still fails is handed to the queue's dead-letter destination. A
message is acknowledged only after a successful handler call or after that
dead-letter handoff.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple
from uuid import uuid4

from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential

from app.shared.utils.logging import log_context

from .base import IntegrationEvent, UnknownEventError, deserialize_event, serialize_event

logger = logging.getLogger(__name__)

EventHandler = Callable[[IntegrationEvent], Awaitable[None]]


@dataclass
class Message:
    """Envelope travelling through a queue."""

    exchange: str
    routing_key: str
    body: str
    message_id: str = field(default_factory=lambda: str(uuid4()))
    published_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message_id": self.message_id,
            "exchange": self.exchange,
            "routing_key": self.routing_key,
            "body": self.body,
            "published_at": self.published_at,
            "attempts": self.attempts,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(**data)


@dataclass
class DeadLetter:
    """A message that exhausted its delivery attempts."""

    queue: str
    message: Message
    error: str
    failed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queue": self.queue,
            "message": self.message.to_dict(),
            "error": self.error,
            "failed_at": self.failed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeadLetter":
        data = dict(data)
        data["message"] = Message.from_dict(data["message"])
        return cls(**data)


@dataclass(frozen=True)
class Subscription:
    exchange: str
    queue: str
    routing_key: str
    handler: EventHandler

    @property
    def handler_name(self) -> str:
        return getattr(self.handler, "__qualname__", repr(self.handler))


@dataclass
class RetryPolicy:
    """Bounded exponential backoff for handler calls."""

    max_attempts: int = 5
    base_delay: float = 0.5
    max_delay: float = 30.0

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(max(1, self.max_attempts)),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )


class MessageBroker(ABC):
    """
    Base broker: owns subscriptions and the retry / dead-letter delivery path.
    Backends implement routing, queue storage and acknowledgement.
    """

    def __init__(self, retry_policy: Optional[RetryPolicy] = None):
        self.retry_policy = retry_policy or RetryPolicy()
        self._subscriptions: List[Subscription] = []
        self._handlers: Dict[Tuple[str, str], EventHandler] = {}
        self._running = False
        self._stats = {
            "published": 0,
            "processed": 0,
            "retries": 0,
            "dead_lettered": 0,
        }

    @property
    def is_running(self) -> bool:
        return self._running

    def subscribe(self, exchange: str, queue: str, routing_key: str, handler: EventHandler) -> Subscription:
        """
        Bind `queue` to `exchange` for `routing_key` and consume it with `handler`.

        Call once per process at start-up. A queue has one handler per routing key.

        Raises:
            ValueError: If the (queue, routing key) pair already has a handler
        """
        key = (queue, routing_key)
        if key in self._handlers:
            raise ValueError(f"Queue {queue!r} already has a handler for routing key {routing_key!r}")

        subscription = Subscription(exchange, queue, routing_key, handler)
        self._handlers[key] = handler
        self._subscriptions.append(subscription)
        self._on_subscribe(subscription)
        logger.info(
            f"Subscribed {subscription.handler_name} to {exchange}/{routing_key} via queue {queue}"
        )
        return subscription

    def get_subscriptions(self) -> List[Dict[str, str]]:
        return [
            {
                "exchange": s.exchange,
                "queue": s.queue,
                "routing_key": s.routing_key,
                "handler": s.handler_name,
            }
            for s in self._subscriptions
        ]

    def get_stats(self) -> Dict[str, Any]:
        return {**self._stats, "running": self._running, "subscriptions": len(self._subscriptions)}

    async def publish(self, message: IntegrationEvent, exchange: str, routing_key: str) -> int:
        """
        Publish an event to every queue bound to (exchange, routing_key).

        Returns:
            int: Number of queues the message was routed to
        """
        envelope = Message(exchange=exchange, routing_key=routing_key, body=serialize_event(message))
        routed = await self._route(envelope)
        self._stats["published"] += 1
        if routed == 0:
            logger.warning(f"Message {message.event_type} on {exchange}/{routing_key} was not routed to any queue")
        else:
            logger.info(f"Published {message.event_type} {message.event_id} to {routed} queue(s)")
        return routed

    async def _deliver(self, queue: str, message: Message) -> bool:
        """
        Run the handler for a message with retries.

        Returns:
            bool: True when the message may be acknowledged
        """
        handler = self._handlers.get((queue, message.routing_key))
        if handler is None:
            return await self._hand_off(queue, message, f"No handler for routing key {message.routing_key!r}")

        try:
            event = deserialize_event(message.body)
        except UnknownEventError as e:
            # poison message, retrying cannot help
            return await self._hand_off(queue, message, str(e))

        with log_context(correlation_id=event.event_id):
            try:
                async for attempt in self.retry_policy.retrying():
                    with attempt:
                        message.attempts += 1
                        if message.attempts > 1:
                            self._stats["retries"] += 1
                        await handler(event)
            except Exception as e:
                logger.error(
                    f"Handler for {event.event_type} {event.event_id} failed after "
                    f"{message.attempts} attempt(s): {e!r}"
                )
                return await self._hand_off(queue, message, repr(e))

            self._stats["processed"] += 1
            logger.debug(f"Message {message.message_id} processed on {queue}")
            return True

    async def _process(self, queue: str, message: Message) -> bool:
        """
        Deliver a message without ever raising into the consumer loop.

        Anything _deliver did not anticipate dead-letters the message.
        """
        try:
            return await self._deliver(queue, message)
        except Exception as e:
            logger.error(f"Unexpected error delivering message {message.message_id} on {queue}: {e!r}", exc_info=True)
            return await self._hand_off(queue, message, repr(e))

    async def _hand_off(self, queue: str, message: Message, error: str) -> bool:
        dead_letter = DeadLetter(queue=queue, message=message, error=error)
        try:
            await self._store_dead_letter(dead_letter)
        except Exception as e:
            logger.critical(f"Dead-letter handoff failed for message {message.message_id} on {queue}: {e!r}")
            return False
        self._stats["dead_lettered"] += 1
        logger.warning(f"Message {message.message_id} moved to dead-letter queue of {queue}: {error}")
        return True

    # =========================================================================
    # BACKEND HOOKS
    # =========================================================================

    def _on_subscribe(self, subscription: Subscription) -> None:
        """Backends declare bindings / start consumers here."""

    @abstractmethod
    async def _route(self, message: Message) -> int:
        """Enqueue the message on every bound queue."""

    @abstractmethod
    async def _store_dead_letter(self, dead_letter: DeadLetter) -> None:
        """Persist a dead letter."""

    @abstractmethod
    async def dead_letters(self, queue: str) -> List[DeadLetter]:
        """Dead letters recorded for a queue."""

    @abstractmethod
    async def start(self) -> None:
        """Start consuming subscribed queues."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop consumers; unacknowledged messages stay queued."""


class InMemoryMessageBroker(MessageBroker):
    """
    Single-process broker on asyncio queues.
    Used for development and tests; both services must share the process.
    """

    def __init__(self, retry_policy: Optional[RetryPolicy] = None, workers_per_queue: int = 1):
        super().__init__(retry_policy)
        self.workers_per_queue = max(1, workers_per_queue)
        self._bindings: Dict[Tuple[str, str], Set[str]] = defaultdict(set)
        self._queues: Dict[str, asyncio.Queue] = {}
        self._workers: Dict[str, List[asyncio.Task]] = {}
        self._dead_letters: Dict[str, List[DeadLetter]] = defaultdict(list)

    def _queue(self, name: str) -> asyncio.Queue:
        if name not in self._queues:
            self._queues[name] = asyncio.Queue()
        return self._queues[name]

    def _on_subscribe(self, subscription: Subscription) -> None:
        self._bindings[(subscription.exchange, subscription.routing_key)].add(subscription.queue)
        self._queue(subscription.queue)
        if self._running:
            self._start_workers(subscription.queue)

    async def _route(self, message: Message) -> int:
        queues = self._bindings.get((message.exchange, message.routing_key), set())
        for name in queues:
            # each queue gets its own copy so attempt counters stay independent
            self._queue(name).put_nowait(Message.from_dict(message.to_dict()))
        return len(queues)

    async def _store_dead_letter(self, dead_letter: DeadLetter) -> None:
        self._dead_letters[dead_letter.queue].append(dead_letter)

    async def dead_letters(self, queue: str) -> List[DeadLetter]:
        return list(self._dead_letters.get(queue, []))

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for name in self._queues:
            self._start_workers(name)
        logger.info(f"In-memory message broker started with {len(self._queues)} queue(s)")

    def _start_workers(self, name: str) -> None:
        if self._workers.get(name):
            return
        self._workers[name] = [
            asyncio.create_task(self._consume(name), name=f"consumer:{name}:{i}")
            for i in range(self.workers_per_queue)
        ]

    async def _consume(self, name: str) -> None:
        queue = self._queue(name)
        while True:
            message = await queue.get()
            try:
                acknowledged = await self._process(name, message)
                if not acknowledged:
                    queue.put_nowait(message)
            finally:
                queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued message has been acknowledged."""
        await asyncio.gather(*(q.join() for q in self._queues.values()))

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        tasks = [task for workers in self._workers.values() for task in workers]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._workers.clear()
        logger.info("In-memory message broker stopped")
