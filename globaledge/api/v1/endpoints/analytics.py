"""
Analytics API endpoints.

- GET    /integration/analytics         — User / asset / investment analytics
- GET    /integration/security-stats    — Security form, waitlist and user counts
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.api.envelope import success_response
from globaledge.db.session import get_db
from globaledge.integration.entities import (
    ASSETS,
    INVESTMENTS,
    SECURITY_FORMS,
    USERS,
    WAITLIST,
)
from globaledge.integration.sources import Operation
from globaledge.schemas.common import ErrorResponse, SuccessEnvelope
from globaledge.schemas.query import parse_use_database
from globaledge.services.analytics_service import AnalyticsService, parse_analytics_type
from globaledge.services.entity_service import build_entity_service

router = APIRouter()


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(
        users=build_entity_service(USERS, db),
        assets=build_entity_service(ASSETS, db),
        investments=build_entity_service(INVESTMENTS, db),
        security_forms=build_entity_service(SECURITY_FORMS, db),
        waitlist=build_entity_service(WAITLIST, db),
    )


@router.get(
    "/analytics",
    summary="Platform analytics",
    description=(
        "``type`` is one of users, assets, investments or all (default).  "
        "``all`` adds headline totals across the three summaries."
    ),
    responses={
        200: {"model": SuccessEnvelope, "description": "Analytics summary"},
        400: {"model": ErrorResponse, "description": "Unknown analytics type"},
    },
)
async def get_analytics(
    type: Optional[str] = Query(None, description="Analytics type"),
    useDatabase: Optional[str] = Query(None, description="false serves mock data"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> JSONResponse:
    result = await service.overview(
        parse_analytics_type(type), use_database=parse_use_database(useDatabase)
    )
    return success_response(Operation.GET, result.value, result.source)


@router.get(
    "/security-stats",
    summary="Compliance statistics",
    responses={200: {"model": SuccessEnvelope, "description": "Per-status counts"}},
)
async def get_security_stats(
    useDatabase: Optional[str] = Query(None, description="false serves mock data"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> JSONResponse:
    result = await service.security_stats(use_database=parse_use_database(useDatabase))
    return success_response(Operation.GET, result.value, result.source)
