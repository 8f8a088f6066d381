"""
Resilience primitives for calls into the persistent store.

- :class:`CircuitBreaker`: after ``failure_threshold`` consecutive transient
  failures the database is treated as down and calls fail fast with
  :class:`CircuitBreakerError` until ``recovery_timeout`` has passed.  One
  trial call is then let through (HALF_OPEN); its outcome closes or re-opens the
  circuit.
- :func:`retry_with_backoff`: retries idempotent reads with doubling delays.
  Writes are never wrapped.
- :func:`with_timeout`: bounds a single call and cancels it when the budget
  runs out.  A breaker with ``call_timeout`` applies it to every call, so a
  hanging database counts as a failure like a dropped connection.

The source router treats every failure raised here as "database unavailable"
and decides between mock fallback and a 503.
"""

import asyncio
import functools
import logging
import random
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError

from globaledge.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures that say nothing about the request itself: dropped connections,
# refused connections, timeouts, driver-level errors.
TRANSIENT_ERRORS: Tuple[Type[Exception], ...] = (
    ConnectionError,
    OSError,
    TimeoutError,
    asyncio.TimeoutError,
    OperationalError,
    InterfaceError,
)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(Exception):
    """A call was rejected without reaching the database."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is OPEN; retry in {retry_after:.1f}s")


class CircuitBreaker:
    """
    Async circuit breaker shared by every repository.

    Only exceptions in ``trips_on`` count as failures.  Domain errors such as
    integrity violations pass through without touching the counters.  With
    ``call_timeout`` set, a call still pending after that many seconds is
    cancelled and recorded as a timeout failure.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        trips_on: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS,
        call_timeout: Optional[float] = None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.trips_on = trips_on
        self.call_timeout = call_timeout
        self.reset()

    def reset(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._last_failure = 0.0

    @property
    def retry_after(self) -> float:
        """Seconds until an OPEN circuit admits a trial call (0 otherwise)."""
        if self._state is not CircuitState.OPEN:
            return 0.0
        return max(0.0, self.recovery_timeout - (time.monotonic() - self._last_failure))

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self.retry_after == 0.0:
            self._state = CircuitState.HALF_OPEN
            logger.info("Circuit '%s' half-open, admitting one trial call", self.name)
        return self._state

    def _on_success(self) -> None:
        if self._state is not CircuitState.CLOSED:
            logger.info("Circuit '%s' closed, database reachable again", self.name)
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes += 1

    def _on_failure(self, exc: Exception) -> None:
        self._failures += 1
        self._last_failure = time.monotonic()
        if self._failures < self.failure_threshold:
            logger.warning(
                "Circuit '%s' failure %d/%d (%s)",
                self.name,
                self._failures,
                self.failure_threshold,
                type(exc).__name__,
            )
            return
        self._state = CircuitState.OPEN
        logger.error(
            "Circuit '%s' OPEN after %d failures; failing fast for %.1fs",
            self.name,
            self._failures,
            self.recovery_timeout,
        )

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        if self.state is CircuitState.OPEN:
            raise CircuitBreakerError(self.name, self.retry_after)
        try:
            if self.call_timeout is None:
                result = await func(*args, **kwargs)
            else:
                result = await with_timeout(func(*args, **kwargs), self.call_timeout)
        except self.trips_on as exc:
            self._on_failure(exc)
            raise
        self._on_success()
        return result

    def get_status(self) -> Dict[str, Any]:
        """Breaker snapshot for ``/health``."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failures": self._failures,
            "failureThreshold": self.failure_threshold,
            "successes": self._successes,
            "recoveryTimeoutSeconds": self.recovery_timeout,
            "retryAfterSeconds": round(self.retry_after, 1),
        }


db_circuit_breaker = CircuitBreaker(
    name="database",
    failure_threshold=settings.CB_FAILURE_THRESHOLD,
    recovery_timeout=settings.CB_RECOVERY_TIMEOUT,
    call_timeout=settings.BACKEND_TIMEOUT_SECONDS,
)


def backoff_delays(
    retries: int, base_delay: float, max_delay: float, jitter: bool = True
) -> Iterator[float]:
    """Yield ``retries`` sleep durations, doubling from ``base_delay`` up to ``max_delay``."""
    delay = base_delay
    for _ in range(retries):
        capped = min(delay, max_delay)
        yield capped + random.uniform(0, capped * 0.5) if jitter else capped
        delay *= 2


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS,
) -> Callable:
    """
    Decorator: retry an async function on ``retryable_exceptions``.

    ``max_retries=0`` means a single attempt; other exceptions propagate at
    once.  The last failure is re-raised when the retries are used up.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        name = getattr(func, "__qualname__", repr(func))

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            delays = backoff_delays(max_retries, base_delay, max_delay, jitter)
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as exc:
                    delay = next(delays, None)
                    if delay is None:
                        if max_retries:
                            logger.error(
                                "%s failed after %d attempts (%s)",
                                name,
                                attempt,
                                type(exc).__name__,
                            )
                        raise
                    logger.warning(
                        "%s attempt %d failed (%s), retrying in %.2fs",
                        name,
                        attempt,
                        type(exc).__name__,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator


async def with_timeout(awaitable: Awaitable[T], seconds: float) -> T:
    """Await ``awaitable`` for at most ``seconds``; the pending call is cancelled on expiry."""
    return await asyncio.wait_for(awaitable, timeout=seconds)
