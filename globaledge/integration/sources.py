"""
Vocabulary shared by the source router, the backends and the services.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class DataSource(str, Enum):
    """Backend that actually served a call."""

    DATABASE = "database"
    MOCK = "mock"


class Operation(str, Enum):
    GET = "get"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"

    @property
    def is_read(self) -> bool:
        return self in (Operation.GET, Operation.LIST)


@dataclass(frozen=True)
class FallbackPolicy:
    """Which reads may be served from mock data when the database fails.

    Writes are never eligible.
    """

    on_get: bool = False
    on_list: bool = False

    def allows(self, operation: Operation) -> bool:
        if operation is Operation.GET:
            return self.on_get
        if operation is Operation.LIST:
            return self.on_list
        return False


NO_FALLBACK = FallbackPolicy()
READ_FALLBACK = FallbackPolicy(on_get=True, on_list=True)


@dataclass
class Page(Generic[T]):
    items: List[T]
    total_count: int
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        return (self.page - 1) * self.page_size + len(self.items) < self.total_count

    def map(self, func: Callable[[T], U]) -> "Page[U]":
        items = [func(item) for item in self.items]
        return Page(items, self.total_count, self.page, self.page_size)


@dataclass(frozen=True)
class Sourced(Generic[T]):
    """A backend result labelled with where it came from."""

    value: T
    source: DataSource
    fallback_reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.fallback_reason is not None


def combine_sources(sources: Iterable[DataSource]) -> DataSource:
    """Label for an answer assembled from several calls: ``database`` only if all were."""
    return (
        DataSource.DATABASE
        if all(source is DataSource.DATABASE for source in sources)
        else DataSource.MOCK
    )


class ServingMode(str, Enum):
    """What the API can still answer given database reachability and the fallback switch."""

    NORMAL = "normal"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"

    @property
    def reads(self) -> str:
        if self is ServingMode.NORMAL:
            return DataSource.DATABASE.value
        if self is ServingMode.DEGRADED:
            return DataSource.MOCK.value
        return "unavailable"

    @property
    def writes(self) -> str:
        return DataSource.DATABASE.value if self is ServingMode.NORMAL else "unavailable"


def serving_mode(database_up: bool, fallback_enabled: bool) -> ServingMode:
    if database_up:
        return ServingMode.NORMAL
    return ServingMode.DEGRADED if fallback_enabled else ServingMode.UNAVAILABLE
