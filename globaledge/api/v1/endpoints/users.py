"""
User API endpoints.

- GET    /users    — List users (paginated, filterable)
- POST   /users    — Create a user

These routes are database-only: a database failure is a 503, never mock data.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.api.envelope import page_payload, success_response
from globaledge.db.session import get_db
from globaledge.integration.entities import USERS
from globaledge.integration.sources import NO_FALLBACK, Operation
from globaledge.schemas.common import (
    ErrorResponse,
    PageEnvelope,
    SuccessEnvelope,
    ValidationErrorResponse,
)
from globaledge.schemas.query import normalize_query_options
from globaledge.services.entity_service import EntityService, build_entity_service

router = APIRouter()


# ── Dependency injection ──


def get_user_service(db: AsyncSession = Depends(get_db)) -> EntityService:
    """Build a user service wired to the current request's DB session."""
    return build_entity_service(USERS, db, policy=NO_FALLBACK)


# ── Endpoints ──


@router.get(
    "",
    summary="List users",
    description=(
        "Paginated user list.  Supports ``page``, ``pageSize``, ``sortBy``, "
        "``sortOrder``, ``role``, ``status``, ``kycStatus``, ``country`` and ``q``."
    ),
    responses={
        200: {"model": PageEnvelope, "description": "One page of users"},
        400: {"model": ErrorResponse, "description": "Invalid date range"},
        503: {"model": ErrorResponse, "description": "Database unavailable"},
    },
)
async def list_users(
    request: Request,
    service: EntityService = Depends(get_user_service),
) -> JSONResponse:
    options = normalize_query_options(request.query_params, USERS.query)
    result = await service.list(options)
    page = result.value.map(USERS.serialize)
    return success_response(Operation.LIST, page_payload(page), result.source)


@router.post(
    "",
    status_code=201,
    summary="Create a user",
    responses={
        201: {"model": SuccessEnvelope, "description": "The created user"},
        400: {"model": ErrorResponse, "description": "Missing or invalid field"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"model": ValidationErrorResponse, "description": "Body is not a JSON object"},
        503: {"model": ErrorResponse, "description": "Database unavailable"},
    },
)
async def create_user(
    payload: Dict[str, Any] = Body(...),
    service: EntityService = Depends(get_user_service),
) -> JSONResponse:
    result = await service.create(payload)
    return success_response(Operation.CREATE, USERS.serialize(result.value), result.source)
