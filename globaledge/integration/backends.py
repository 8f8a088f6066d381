"""
The two interchangeable backends behind every entity.

``DatabaseBackend`` delegates to :class:`BaseRepository`; ``MockBackend``
serves the in-process :class:`MockDataStore`.  Both expose the same four
coroutines and return the same model instances, so the router and the
services never care which one answered.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Type

from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel

from globaledge.core.exceptions import ConflictException
from globaledge.integration.mock_data import MockDataStore
from globaledge.integration.sources import Page
from globaledge.repositories.base import BaseRepository
from globaledge.schemas.query import QueryOptions, SortOrder

logger = logging.getLogger(__name__)

# Receives the stored record and the requested changes, returns the changes to
# apply (possibly with derived fields added), or raises a domain error.
UpdateHook = Callable[[Any, Dict[str, Any]], Dict[str, Any]]


def _apply_changes(record: Any, changes: Dict[str, Any]) -> None:
    for key, value in changes.items():
        setattr(record, key, value)


class Backend(Protocol):
    async def get(self, id: str) -> Optional[Any]: ...

    async def list(self, options: QueryOptions) -> Page[Any]: ...

    async def create(self, data: Dict[str, Any]) -> Any: ...

    async def update(self, id: str, patch: Dict[str, Any], hook: UpdateHook) -> Optional[Any]: ...


class DatabaseBackend:
    """Persistent store access for one entity."""

    def __init__(self, entity_name: str, repo: BaseRepository):
        self._entity_name = entity_name
        self._repo = repo

    async def _raise_conflict(self, exc: IntegrityError) -> None:
        await self._repo.db.rollback()
        logger.warning("IntegrityError writing %s: %s", self._entity_name, exc)
        raise ConflictException(
            f"{self._entity_name} conflicts with an existing record", source="database"
        )

    async def get(self, id: str) -> Optional[Any]:
        return await self._repo.get(id)

    async def list(self, options: QueryOptions) -> Page[Any]:
        items, total = await self._repo.list(options)
        return Page(items, total, options.page, options.page_size)

    async def create(self, data: Dict[str, Any]) -> Any:
        try:
            return await self._repo.create(self._repo.model(**data))
        except IntegrityError as exc:
            await self._raise_conflict(exc)

    async def update(self, id: str, patch: Dict[str, Any], hook: UpdateHook) -> Optional[Any]:
        record = await self._repo.get(id)
        if record is None:
            return None
        _apply_changes(record, hook(record, patch))
        try:
            return await self._repo.update(record)
        except IntegrityError as exc:
            await self._raise_conflict(exc)


class MockBackend:
    """In-memory counterpart of :class:`DatabaseBackend`.

    Filtering, search, sorting and pagination follow the same rules as the
    SQL queries in ``BaseRepository.list``.
    """

    def __init__(
        self,
        entity_name: str,
        collection: str,
        model: Type[SQLModel],
        store: MockDataStore,
        unique_fields: Sequence[str] = (),
    ):
        self._entity_name = entity_name
        self._collection = collection
        self._model = model
        self._store = store
        self._unique_fields = tuple(unique_fields)

    @property
    def _records(self) -> Dict[str, Any]:
        return self._store.collection(self._collection)

    def _matches(self, record: Any, options: QueryOptions) -> bool:
        for attribute, value in options.filters.items():
            if getattr(record, attribute) != value:
                return False
        if options.date_field:
            stamp = getattr(record, options.date_field)
            if options.date_from is not None and stamp < options.date_from:
                return False
            if options.date_to is not None and stamp > options.date_to:
                return False
        if options.search and options.search_fields:
            needle = options.search.lower()
            if not any(
                needle in str(getattr(record, name) or "").lower()
                for name in options.search_fields
            ):
                return False
        return True

    @staticmethod
    def _sorted(records: List[Any], options: QueryOptions) -> List[Any]:
        attribute = options.sort_by
        reverse = options.sort_order is SortOrder.DESC
        present = [r for r in records if getattr(r, attribute) is not None]
        missing = [r for r in records if getattr(r, attribute) is None]
        present.sort(key=lambda r: (getattr(r, attribute), r.id), reverse=reverse)
        missing.sort(key=lambda r: r.id, reverse=reverse)
        return present + missing

    def _check_unique(self, data: Dict[str, Any], exclude_id: Optional[str] = None) -> None:
        for name in self._unique_fields:
            value = data.get(name)
            if value is None:
                continue
            for record in self._records.values():
                if record.id != exclude_id and getattr(record, name) == value:
                    raise ConflictException(
                        f"{self._entity_name} with {name} '{value}' already exists",
                        source="mock",
                    )

    async def get(self, id: str) -> Optional[Any]:
        return self._records.get(id)

    async def list(self, options: QueryOptions) -> Page[Any]:
        matching = [r for r in self._records.values() if self._matches(r, options)]
        ordered = self._sorted(matching, options)
        window = ordered[options.offset : options.offset + options.page_size]
        return Page(window, len(ordered), options.page, options.page_size)

    async def create(self, data: Dict[str, Any]) -> Any:
        self._check_unique(data)
        record = self._model(**data)
        self._store.add(self._collection, record)
        return record

    async def update(self, id: str, patch: Dict[str, Any], hook: UpdateHook) -> Optional[Any]:
        record = self._records.get(id)
        if record is None:
            return None
        changes = hook(record, patch)
        self._check_unique(changes, exclude_id=id)
        _apply_changes(record, changes)
        return record
