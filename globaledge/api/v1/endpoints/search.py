"""
Search API endpoints.

- GET    /integration/search              — Search with query-string criteria
- POST   /integration/search              — Search with ``{query, filters, options}``
- GET    /integration/search/suggestions  — Completion suggestions
- GET    /integration/search/popular      — Popular search terms
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.api.envelope import success_response
from globaledge.db.session import get_db
from globaledge.integration.entities import ASSETS, INVESTMENTS, USERS
from globaledge.integration.sources import DataSource, Operation, Sourced
from globaledge.schemas.common import ErrorResponse
from globaledge.schemas.query import parse_use_database
from globaledge.services import search_service
from globaledge.services.entity_service import build_entity_service
from globaledge.services.search_service import (
    SearchCriteria,
    SearchPage,
    SearchService,
    criteria_from_body,
    criteria_from_params,
)

router = APIRouter()


def get_search_service(db: AsyncSession = Depends(get_db)) -> SearchService:
    return SearchService(
        users=build_entity_service(USERS, db),
        assets=build_entity_service(ASSETS, db),
        investments=build_entity_service(INVESTMENTS, db),
    )


def _search_payload(criteria: SearchCriteria, result: Sourced[SearchPage]) -> Dict[str, Any]:
    page = result.value
    return {
        "results": [hit.to_api() for hit in page.results],
        "total": page.total,
        "query": criteria.query,
        "type": criteria.type.value,
        "limit": criteria.limit,
        "offset": criteria.offset,
        "hasMore": criteria.offset + len(page.results) < page.total,
        "source": result.source.value,
    }


@router.get(
    "",
    summary="Search assets, users and investments",
    responses={400: {"model": ErrorResponse, "description": "Missing query"}},
)
async def search(
    request: Request,
    service: SearchService = Depends(get_search_service),
) -> JSONResponse:
    params = request.query_params
    criteria = criteria_from_params(params)
    use_database = parse_use_database(params.get("useDatabase"))
    result = await service.search(criteria, use_database=use_database)
    return success_response(Operation.LIST, _search_payload(criteria, result), result.source)


@router.post(
    "",
    summary="Search with a structured body",
    responses={400: {"model": ErrorResponse, "description": "Missing query"}},
)
async def search_with_body(
    body: Dict[str, Any] = Body(...),
    service: SearchService = Depends(get_search_service),
) -> JSONResponse:
    criteria = criteria_from_body(body)
    use_database = parse_use_database(body.get("useDatabase"))
    result = await service.search(criteria, use_database=use_database)
    return success_response(Operation.LIST, _search_payload(criteria, result), result.source)


@router.get("/suggestions", summary="Search suggestions")
async def suggestions(
    q: str = Query("", description="Partial query"),
    limit: int = Query(10, description="Maximum suggestions"),
) -> JSONResponse:
    data = {"suggestions": search_service.suggest(q, limit), "query": q}
    return success_response(Operation.LIST, data, DataSource.MOCK)


@router.get("/popular", summary="Popular searches")
async def popular(limit: int = Query(10, description="Maximum terms")) -> JSONResponse:
    data = {"searches": search_service.popular(limit)}
    return success_response(Operation.LIST, data, DataSource.MOCK)
