"""
Entity service: the request pipeline shared by every entity.

    payload → required-field check → schema validation → create hook
            → source router (database | mock) → Sourced result

Raises domain exceptions from ``globaledge.core.exceptions``; it never imports
FastAPI.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.core.config import settings
from globaledge.core.exceptions import NotFoundException, ValidationFailure
from globaledge.core.validation import parse_payload, require_fields
from globaledge.integration.backends import DatabaseBackend, MockBackend
from globaledge.integration.entities import EntityDefinition
from globaledge.integration.mock_data import MockDataStore, mock_store
from globaledge.integration.router import SourceRouter
from globaledge.integration.sources import DataSource, FallbackPolicy, Operation, Page, Sourced
from globaledge.repositories.base import BaseRepository
from globaledge.schemas.query import QueryOptions

logger = logging.getLogger(__name__)


class EntityService:
    """CRUD for one entity over the source router."""

    def __init__(self, entity: EntityDefinition, router: SourceRouter):
        self.entity = entity
        self._router = router

    def _with_aliases(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        data = dict(payload)
        for legacy, canonical in self.entity.payload_aliases.items():
            if legacy in data and canonical not in data:
                data[canonical] = data.pop(legacy)
        return data

    # ── Queries ──

    async def list(self, options: QueryOptions, use_database: bool = True) -> Sourced[Page]:
        return await self._router.dispatch(Operation.LIST, options, use_database=use_database)

    async def get(self, id: str, use_database: bool = True) -> Sourced[Any]:
        """Raises :class:`NotFoundException` if no backend record has this id."""
        result = await self._router.dispatch(Operation.GET, id, use_database=use_database)
        if result.value is None:
            raise NotFoundException(self.entity.name, id, source=result.source.value)
        return result

    def _scan_options(
        self,
        page: int,
        filters: Optional[Mapping[str, Any]],
        date_from: Optional[datetime],
        date_to: Optional[datetime],
    ) -> QueryOptions:
        spec = self.entity.query
        return QueryOptions(
            page=page,
            page_size=settings.SEARCH_SCAN_LIMIT,
            sort_by=spec.sortable[spec.default_sort],
            sort_order=spec.default_order,
            filters=dict(filters or {}),
            date_from=date_from,
            date_to=date_to,
            date_field=spec.date_field,
        )

    async def scan(
        self,
        use_database: bool = True,
        filters: Optional[Mapping[str, Any]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Sourced[List[Any]]:
        """Fetch up to ``SEARCH_SCAN_LIMIT`` candidate records for search."""
        options = self._scan_options(1, filters, date_from, date_to)
        result = await self.list(options, use_database=use_database)
        return Sourced(result.value.items, result.source, result.fallback_reason)

    async def scan_all(
        self,
        use_database: bool = True,
        filters: Optional[Mapping[str, Any]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Sourced[List[Any]]:
        """Fetch every matching record, ``SEARCH_SCAN_LIMIT`` at a time.

        Used where totals must be exact (reports, waitlist stats).  All pages
        come from one backend: if the database fails part-way through, the
        scan starts over from mock data.
        """
        records: List[Any] = []
        page = 1
        first: Optional[Sourced[Page]] = None
        while True:
            options = self._scan_options(page, filters, date_from, date_to)
            result = await self.list(options, use_database=use_database)
            if first is None:
                first = result
                use_database = result.source is DataSource.DATABASE
            elif result.source is not first.source:
                logger.warning(
                    "%s scan switched to mock data on page %d, rescanning",
                    self.entity.name,
                    page,
                    extra={"entity": self.entity.collection, "source": result.source.value},
                )
                rescan = await self.scan_all(False, filters, date_from, date_to)
                return Sourced(rescan.value, rescan.source, result.fallback_reason)
            records.extend(result.value.items)
            if not result.value.has_more or not result.value.items:
                return Sourced(records, first.source, first.fallback_reason)
            page += 1

    # ── Commands ──

    async def create(self, payload: Mapping[str, Any], use_database: bool = True) -> Sourced[Any]:
        data = self._with_aliases(payload)
        require_fields(data, self.entity.required_fields)
        validated = parse_payload(self.entity.create_schema, data)
        record_data = self.entity.on_create(validated.model_dump())

        result = await self._router.dispatch(
            Operation.CREATE, record_data, use_database=use_database
        )
        logger.info(
            "Created %s %s",
            self.entity.name,
            result.value.id,
            extra={"entity": self.entity.collection, "source": result.source.value},
        )
        return result

    async def update(
        self, id: str, payload: Mapping[str, Any], use_database: bool = True
    ) -> Sourced[Any]:
        """
        Apply a partial update.

        Raises :class:`ValidationFailure` for an empty or invalid patch,
        :class:`NotFoundException` for an unknown id, and
        :class:`BusinessRuleViolation` when the entity's update hook rejects
        the change.
        """
        data = self._with_aliases(payload)
        require_fields(data, self.entity.update_required_fields)
        validated = parse_payload(self.entity.update_schema, data)
        changes = validated.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationFailure("body", "must contain at least one updatable field")

        result = await self._router.dispatch(
            Operation.UPDATE, id, changes, self.entity.on_update, use_database=use_database
        )
        if result.value is None:
            raise NotFoundException(self.entity.name, id, source=result.source.value)
        logger.info(
            "Updated %s %s (%s)",
            self.entity.name,
            id,
            ", ".join(sorted(changes)),
            extra={"entity": self.entity.collection, "source": result.source.value},
        )
        return result


def build_entity_service(
    entity: EntityDefinition,
    db: AsyncSession,
    policy: Optional[FallbackPolicy] = None,
    store: MockDataStore = mock_store,
) -> EntityService:
    """Wire an :class:`EntityService` to the request's session and the mock store.

    ``policy`` overrides the entity's default fallback policy for a route family.
    """
    router = SourceRouter(
        entity.collection,
        database=DatabaseBackend(entity.name, BaseRepository(entity.model, db)),
        mock=MockBackend(
            entity.name, entity.collection, entity.model, store, entity.unique_fields
        ),
        policy=entity.fallback if policy is None else policy,
    )
    return EntityService(entity, router)
