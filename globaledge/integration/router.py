"""
Source router: sends each entity operation to the database or the mock store.

The choice is made per call from the ``use_database`` argument; the router
keeps no mode of its own, so concurrent requests with different choices never
see each other's setting.

Each repository call is bounded by the database circuit breaker's timeout.
Reads are retried on transient errors; writes are attempted once.  When the
database fails:

- a read whose :class:`FallbackPolicy` allows it is answered from mock data
  and labelled ``source=mock``;
- anything else raises :class:`BackendUnavailable` (503).

Domain errors (not found, conflict, business rule) pass straight through.
"""

import logging
from typing import Any, Awaitable, Tuple, Type

from sqlalchemy.exc import SQLAlchemyError

from globaledge.core.config import settings
from globaledge.core.exceptions import BackendUnavailable
from globaledge.core.resilience import (
    TRANSIENT_ERRORS,
    CircuitBreakerError,
    retry_with_backoff,
)
from globaledge.integration.backends import Backend
from globaledge.integration.sources import DataSource, FallbackPolicy, Operation, Sourced

logger = logging.getLogger(__name__)

BACKEND_FAILURES: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS + (
    CircuitBreakerError,
    SQLAlchemyError,
)


class SourceRouter:
    """Dispatches get/list/create/update for one entity."""

    def __init__(
        self,
        entity: str,
        database: Backend,
        mock: Backend,
        policy: FallbackPolicy,
        read_retries: int = settings.READ_RETRY_ATTEMPTS,
        fallback_enabled: bool = settings.MOCK_FALLBACK_ENABLED,
    ):
        self.entity = entity
        self._database = database
        self._mock = mock
        self._policy = policy
        self._read_retries = read_retries
        self._fallback_enabled = fallback_enabled

    @staticmethod
    def _call(backend: Backend, operation: Operation, args: Tuple[Any, ...]) -> Awaitable[Any]:
        return getattr(backend, operation.value)(*args)

    async def _call_database(self, operation: Operation, args: Tuple[Any, ...]) -> Any:
        async def attempt() -> Any:
            return await self._call(self._database, operation, args)

        if operation.is_read and self._read_retries > 0:
            attempt = retry_with_backoff(
                max_retries=self._read_retries,
                base_delay=settings.READ_RETRY_BASE_DELAY,
                max_delay=1.0,
            )(attempt)
        return await attempt()

    async def dispatch(
        self, operation: Operation, *args: Any, use_database: bool = True
    ) -> Sourced[Any]:
        log_extra = {"entity": self.entity, "operation": operation.value}

        if not use_database:
            value = await self._call(self._mock, operation, args)
            logger.debug(
                "%s %s served by mock data",
                self.entity,
                operation.value,
                extra={**log_extra, "source": DataSource.MOCK.value},
            )
            return Sourced(value, DataSource.MOCK)

        try:
            value = await self._call_database(operation, args)
        except BACKEND_FAILURES as exc:
            reason = f"{type(exc).__name__}: {exc}"
            if not (self._fallback_enabled and self._policy.allows(operation)):
                logger.error(
                    "%s %s failed on database, no fallback permitted (%s)",
                    self.entity,
                    operation.value,
                    reason,
                    extra={**log_extra, "source": DataSource.DATABASE.value},
                )
                raise BackendUnavailable(self.entity, operation.value, exc) from exc

            logger.warning(
                "%s %s fell back to mock data (%s)",
                self.entity,
                operation.value,
                reason,
                extra={**log_extra, "source": DataSource.MOCK.value},
            )
            value = await self._call(self._mock, operation, args)
            return Sourced(value, DataSource.MOCK, fallback_reason=type(exc).__name__)

        return Sourced(value, DataSource.DATABASE)
