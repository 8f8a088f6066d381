"""
Investment API endpoints.

- GET    /investments    — List investments (``investorId`` filters by user)
- POST   /investments    — Record an investment

Like ``/users``, these routes are served by the database only.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.api.envelope import page_payload, success_response
from globaledge.db.session import get_db
from globaledge.integration.entities import INVESTMENTS
from globaledge.integration.sources import NO_FALLBACK, Operation
from globaledge.schemas.common import ErrorResponse, PageEnvelope, SuccessEnvelope
from globaledge.schemas.query import normalize_query_options
from globaledge.services.entity_service import EntityService, build_entity_service

router = APIRouter()


def get_investment_service(db: AsyncSession = Depends(get_db)) -> EntityService:
    return build_entity_service(INVESTMENTS, db, policy=NO_FALLBACK)


@router.get(
    "",
    summary="List investments",
    description=(
        "Paginated investment list.  Filter with ``investorId`` (or ``userId``), "
        "``assetId``, ``status``, ``paymentStatus`` and ``dateFrom``/``dateTo``."
    ),
    responses={
        200: {"model": PageEnvelope, "description": "One page of investments"},
        400: {"model": ErrorResponse, "description": "Invalid date range"},
        503: {"model": ErrorResponse, "description": "Database unavailable"},
    },
)
async def list_investments(
    request: Request,
    service: EntityService = Depends(get_investment_service),
) -> JSONResponse:
    options = normalize_query_options(request.query_params, INVESTMENTS.query)
    result = await service.list(options)
    page = result.value.map(INVESTMENTS.serialize)
    return success_response(Operation.LIST, page_payload(page), result.source)


@router.post(
    "",
    status_code=201,
    summary="Record an investment",
    description=(
        "The investor must have completed KYC.  Fees are computed from the "
        "amount and returned with the investment."
    ),
    responses={
        201: {"model": SuccessEnvelope, "description": "The recorded investment with fees"},
        400: {"model": ErrorResponse, "description": "Missing or invalid field"},
        422: {"model": ErrorResponse, "description": "Investor not KYC-approved"},
        503: {"model": ErrorResponse, "description": "Database unavailable"},
    },
)
async def create_investment(
    payload: Dict[str, Any] = Body(...),
    service: EntityService = Depends(get_investment_service),
) -> JSONResponse:
    result = await service.create(payload)
    return success_response(
        Operation.CREATE, INVESTMENTS.serialize(result.value), result.source
    )
