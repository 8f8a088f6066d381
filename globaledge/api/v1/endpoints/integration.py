"""
Integration API endpoints.

One router per entity, all built by :func:`build_integration_router`:

- GET    /integration/<entity>         — List (``useDatabase`` in the query)
- POST   /integration/<entity>         — Create (``useDatabase`` in the body)
- GET    /integration/<entity>/{id}    — Retrieve one record
- PUT    /integration/<entity>/{id}    — Partial update (``useDatabase`` in the body)

Reads fall back to mock data when the database is down; the ``source`` field
says which backend answered.  Writes never fall back.
"""

from typing import Any, Callable, Dict

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.api.envelope import collection_payload, success_response
from globaledge.db.session import get_db
from globaledge.integration.entities import (
    ASSETS,
    INVESTMENTS,
    KYC_APPLICATIONS,
    SECURITY_FORMS,
    USERS,
    EntityDefinition,
)
from globaledge.integration.sources import Operation, Sourced
from globaledge.schemas.common import ErrorResponse
from globaledge.schemas.query import normalize_query_options, parse_use_database
from globaledge.services.entity_service import EntityService, build_entity_service

INTEGRATION_ROUTES = (
    (ASSETS, "/assets", "Integration: Assets"),
    (INVESTMENTS, "/investments", "Integration: Investments"),
    (KYC_APPLICATIONS, "/kyc", "Integration: KYC"),
    (USERS, "/users", "Integration: Users"),
    (SECURITY_FORMS, "/security-forms", "Integration: Security forms"),
)

# Service dependency per entity collection; tests override these.
SERVICE_DEPENDENCIES: Dict[str, Callable[..., EntityService]] = {}


def _service_dependency(entity: EntityDefinition) -> Callable[..., EntityService]:
    def get_service(db: AsyncSession = Depends(get_db)) -> EntityService:
        return build_entity_service(entity, db)

    get_service.__name__ = f"get_{entity.collection}_integration_service"
    return get_service


def _record_payload(entity: EntityDefinition, result: Sourced[Any]) -> Dict[str, Any]:
    return {entity.item_key: entity.serialize(result.value), "source": result.source.value}


def build_integration_router(entity: EntityDefinition) -> APIRouter:
    router = APIRouter()
    get_service = _service_dependency(entity)
    SERVICE_DEPENDENCIES[entity.collection] = get_service
    not_found = {404: {"model": ErrorResponse, "description": f"{entity.name} not found"}}
    unavailable = {503: {"model": ErrorResponse, "description": "Database unavailable"}}

    @router.get("", summary=f"List {entity.list_key}", responses=unavailable)
    async def list_records(
        request: Request, service: EntityService = Depends(get_service)
    ) -> JSONResponse:
        params = request.query_params
        options = normalize_query_options(params, entity.query)
        use_database = parse_use_database(params.get("useDatabase"))
        result = await service.list(options, use_database=use_database)
        page = result.value.map(entity.serialize)
        payload = collection_payload(
            entity.list_key, Sourced(page, result.source), dict(options.applied_filters)
        )
        return success_response(Operation.LIST, payload, result.source)

    @router.post(
        "",
        status_code=201,
        summary=f"Create {entity.item_key}",
        responses={
            400: {"model": ErrorResponse, "description": "Missing or invalid field"},
            **unavailable,
        },
    )
    async def create_record(
        payload: Dict[str, Any] = Body(...),
        service: EntityService = Depends(get_service),
    ) -> JSONResponse:
        use_database = parse_use_database(payload.pop("useDatabase", None))
        result = await service.create(payload, use_database=use_database)
        return success_response(Operation.CREATE, _record_payload(entity, result), result.source)

    @router.get("/{record_id}", summary=f"Get {entity.item_key}", responses=not_found)
    async def get_record(
        record_id: str,
        request: Request,
        service: EntityService = Depends(get_service),
    ) -> JSONResponse:
        use_database = parse_use_database(request.query_params.get("useDatabase"))
        result = await service.get(record_id, use_database=use_database)
        return success_response(Operation.GET, _record_payload(entity, result), result.source)

    @router.put(
        "/{record_id}",
        summary=f"Update {entity.item_key}",
        responses={
            400: {"model": ErrorResponse, "description": "Invalid patch"},
            422: {"model": ErrorResponse, "description": "Business rule violated"},
            **not_found,
            **unavailable,
        },
    )
    async def update_record(
        record_id: str,
        payload: Dict[str, Any] = Body(...),
        service: EntityService = Depends(get_service),
    ) -> JSONResponse:
        use_database = parse_use_database(payload.pop("useDatabase", None))
        result = await service.update(record_id, payload, use_database=use_database)
        return success_response(Operation.UPDATE, _record_payload(entity, result), result.source)

    return router


router = APIRouter()
for _entity, _prefix, _tag in INTEGRATION_ROUTES:
    router.include_router(build_integration_router(_entity), prefix=_prefix, tags=[_tag])
