"""
Circuit breaker for calls to other services.
Stops hammering an unreachable dependency and fails fast until it recovers.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, TypeVar

from .exceptions import CircuitBreakerError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation, requests pass through
    OPEN = "open"          # Circuit is open, requests fail fast
    HALF_OPEN = "half_open"  # Testing if service is back, limited requests


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_threshold: int = 5           # Consecutive failures to open circuit
    recovery_timeout: float = 30         # Seconds to wait before trying again
    success_threshold: int = 1           # Successes needed to close circuit in half-open
    # only these exceptions count as failures; anything else passes through untouched
    expected_exceptions: Tuple[Type[BaseException], ...] = field(default=(Exception,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout,
            "success_threshold": self.success_threshold,
            "expected_exceptions": [e.__name__ for e in self.expected_exceptions],
        }


class CircuitBreaker:
    """
    Circuit breaker for external service calls.
    """

    def __init__(self, name: str, config: Optional[CircuitBreakerConfig] = None):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.state = CircuitBreakerState.CLOSED
        self.consecutive_failures = 0
        self.half_open_successes = 0
        self.last_failure_time: Optional[float] = None
        self._lock = asyncio.Lock()

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute function with circuit breaker protection.

        Args:
            func: Zero-argument coroutine function to execute

        Returns:
            T: Function result

        Raises:
            CircuitBreakerError: If circuit is open
        """
        await self._check_state()

        if self.state == CircuitBreakerState.OPEN:
            logger.warning(f"Circuit breaker '{self.name}' is OPEN - failing fast")
            raise CircuitBreakerError(self.name)

        try:
            result = await func()
        except self.config.expected_exceptions as e:
            logger.warning(f"Circuit breaker '{self.name}' - failure recorded: {e!r}")
            await self._on_failure()
            raise
        await self._on_success()
        return result

    async def _check_state(self) -> None:
        async with self._lock:
            if self.state == CircuitBreakerState.OPEN and self.last_failure_time is not None:
                if time.monotonic() - self.last_failure_time >= self.config.recovery_timeout:
                    self._change_state(CircuitBreakerState.HALF_OPEN)
                    self.half_open_successes = 0

    async def _on_success(self) -> None:
        async with self._lock:
            self.consecutive_failures = 0
            if self.state == CircuitBreakerState.HALF_OPEN:
                self.half_open_successes += 1
                if self.half_open_successes >= self.config.success_threshold:
                    self._change_state(CircuitBreakerState.CLOSED)

    async def _on_failure(self) -> None:
        async with self._lock:
            self.consecutive_failures += 1
            self.last_failure_time = time.monotonic()

            if self.state == CircuitBreakerState.HALF_OPEN:
                self._change_state(CircuitBreakerState.OPEN)
            elif (self.state == CircuitBreakerState.CLOSED
                  and self.consecutive_failures >= self.config.failure_threshold):
                self._change_state(CircuitBreakerState.OPEN)

    def _change_state(self, new_state: CircuitBreakerState) -> None:
        old_state = self.state
        self.state = new_state
        logger.info(f"Circuit breaker '{self.name}' state changed: {old_state.value} -> {new_state.value}")

    async def reset(self) -> None:
        """Manually reset circuit breaker to closed state."""
        async with self._lock:
            self._change_state(CircuitBreakerState.CLOSED)
            self.consecutive_failures = 0
            self.half_open_successes = 0
            self.last_failure_time = None

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "config": self.config.to_dict(),
            "consecutive_failures": self.consecutive_failures,
            "is_available": self.state != CircuitBreakerState.OPEN,
        }
