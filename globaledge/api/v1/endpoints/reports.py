"""
Report API endpoint.

- GET    /integration/reports    — Generate a users / assets / investments /
                                   system / custom report as JSON or CSV
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.api.envelope import success_response
from globaledge.db.session import get_db
from globaledge.integration.entities import ASSETS, INVESTMENTS, USERS
from globaledge.integration.sources import Operation
from globaledge.schemas.common import ErrorResponse
from globaledge.schemas.query import parse_use_database
from globaledge.services.entity_service import build_entity_service
from globaledge.services.report_service import (
    ReportService,
    parse_report_filters,
    parse_report_format,
    parse_report_type,
)

router = APIRouter()


def get_report_service(db: AsyncSession = Depends(get_db)) -> ReportService:
    return ReportService(
        users=build_entity_service(USERS, db),
        assets=build_entity_service(ASSETS, db),
        investments=build_entity_service(INVESTMENTS, db),
    )


@router.get(
    "",
    summary="Generate a report",
    description=(
        "``type`` is one of users, assets, investments, system (default) or "
        "custom; ``format`` is json (default) or csv.  Custom reports accept a "
        "JSON ``filters`` object with dateFrom/dateTo, status, userRole and assetType."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown type, format or filters"},
        501: {"model": ErrorResponse, "description": "PDF output is not available"},
    },
)
async def generate_report(
    type: Optional[str] = Query(None, description="Report type"),
    format: Optional[str] = Query(None, description="Output format"),
    filters: Optional[str] = Query(None, description="JSON filter object (custom reports)"),
    useDatabase: Optional[str] = Query(None, description="false serves mock data"),
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    result = await service.generate(
        parse_report_type(type),
        parse_report_format(format),
        parse_report_filters(filters),
        use_database=parse_use_database(useDatabase),
    )
    return success_response(Operation.GET, result.value, result.source)
