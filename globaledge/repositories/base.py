"""
Generic async repository (Data Access Layer).

Implements the Repository pattern on top of SQLAlchemy's ``AsyncSession``.
One ``BaseRepository`` serves every entity: filtering, sorting and
pagination are driven by :class:`QueryOptions`, whose attribute names are
validated against the entity's query spec before they get here.

- Every call goes through the shared ``db_circuit_breaker``, which also
  bounds it with ``BACKEND_TIMEOUT_SECONDS``.
- ``list()`` always orders by the requested column and then by primary key,
  so repeated calls over unchanged data return identical pages.
- **IntegrityError** is not caught here; the database backend turns it into
  a 409.
- **OperationalError** rolls the session back before re-raising so a failed
  write never leaves a dirty transaction behind.
"""

import logging
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlmodel import SQLModel

from globaledge.core.resilience import db_circuit_breaker
from globaledge.schemas.query import QueryOptions, SortOrder

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic CRUD repository for SQLModel entities.

    Parameters
    ----------
    model : Type[ModelType]
        The SQLModel class this repository manages.
    db : AsyncSession
        An active async database session (injected per-request).
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def _execute_with_circuit_breaker(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        return await db_circuit_breaker.call(func, *args, **kwargs)

    def _conditions(self, options: QueryOptions) -> List[Any]:
        conditions: List[Any] = [
            getattr(self.model, attribute) == value for attribute, value in options.filters.items()
        ]
        if options.date_field:
            column = getattr(self.model, options.date_field)
            if options.date_from is not None:
                conditions.append(column >= options.date_from)
            if options.date_to is not None:
                conditions.append(column <= options.date_to)
        if options.search and options.search_fields:
            pattern = f"%{options.search}%"
            conditions.append(
                or_(*(getattr(self.model, name).ilike(pattern) for name in options.search_fields))
            )
        return conditions

    async def get(self, id: Any) -> Optional[ModelType]:
        """Fetch a single entity by primary key.  Returns ``None`` if not found."""

        async def _get() -> Optional[ModelType]:
            return await self.db.get(self.model, id)

        return await self._execute_with_circuit_breaker(_get)

    async def list(self, options: QueryOptions) -> Tuple[List[ModelType], int]:
        """Return one page of matching entities plus the total match count."""

        async def _list() -> Tuple[List[ModelType], int]:
            conditions = self._conditions(options)
            pk_columns = list(self.model.__table__.primary_key.columns)
            sort_column = getattr(self.model, options.sort_by)
            if options.sort_order is SortOrder.DESC:
                ordering = [sort_column.desc(), *(col.desc() for col in pk_columns)]
            else:
                ordering = [sort_column.asc(), *(col.asc() for col in pk_columns)]

            stmt = (
                select(self.model)
                .where(*conditions)
                .order_by(*ordering)
                .offset(options.offset)
                .limit(options.page_size)
            )
            result = await self.db.execute(stmt)
            items = list(result.scalars().all())

            count_stmt = select(func.count()).select_from(self.model).where(*conditions)
            total = (await self.db.execute(count_stmt)).scalar_one()
            return items, total

        return await self._execute_with_circuit_breaker(_list)

    async def create(self, obj_in: ModelType) -> ModelType:
        """Insert a new entity and return the refreshed instance."""

        async def _create() -> ModelType:
            self.db.add(obj_in)
            try:
                await self.db.commit()
            except OperationalError:
                await self.db.rollback()
                logger.error("OperationalError during create for %s", self.model.__name__)
                raise
            await self.db.refresh(obj_in)
            return obj_in

        return await self._execute_with_circuit_breaker(_create)

    async def update(self, entity: ModelType) -> ModelType:
        """Persist changes to an already-tracked entity (caller mutates it first)."""

        async def _update() -> ModelType:
            merged = await self.db.merge(entity)
            try:
                await self.db.commit()
            except OperationalError:
                await self.db.rollback()
                logger.error("OperationalError during update for %s", self.model.__name__)
                raise
            await self.db.refresh(merged)
            return merged

        return await self._execute_with_circuit_breaker(_update)
