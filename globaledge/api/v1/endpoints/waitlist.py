"""
Waitlist API endpoints.

- POST   /waitlist         — Join the investor waitlist
- GET    /waitlist         — List submissions with per-status counts
- GET    /waitlist/{id}    — Retrieve one submission
- PUT    /waitlist/{id}    — Change a submission's status
"""

from collections import Counter
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from globaledge.api.envelope import page_payload, success_response
from globaledge.db.session import get_db
from globaledge.integration.entities import WAITLIST
from globaledge.integration.sources import Operation, combine_sources
from globaledge.models.waitlist import WaitlistStatus
from globaledge.schemas.common import ErrorResponse, SuccessEnvelope, ValidationErrorResponse
from globaledge.schemas.query import normalize_query_options, parse_use_database
from globaledge.services.entity_service import EntityService, build_entity_service

router = APIRouter()

CONFIRMATION_MESSAGE = (
    "Thank you for joining our waitlist! We'll be in touch soon with exclusive "
    "investment opportunities."
)


def get_waitlist_service(db: AsyncSession = Depends(get_db)) -> EntityService:
    return build_entity_service(WAITLIST, db)


@router.post(
    "",
    status_code=201,
    summary="Join the waitlist",
    responses={
        201: {"model": SuccessEnvelope, "description": "Submission and confirmation message"},
        400: {"model": ErrorResponse, "description": "Missing field or bad email"},
        422: {"model": ValidationErrorResponse, "description": "Body is not a JSON object"},
    },
)
async def join_waitlist(
    payload: Dict[str, Any] = Body(...),
    service: EntityService = Depends(get_waitlist_service),
) -> JSONResponse:
    use_database = parse_use_database(payload.pop("useDatabase", None))
    result = await service.create(payload, use_database=use_database)
    data = {
        "submission": WAITLIST.serialize(result.value),
        "submissionId": result.value.id,
        "message": CONFIRMATION_MESSAGE,
    }
    return success_response(Operation.CREATE, data, result.source)


@router.get("", summary="List waitlist submissions")
async def list_waitlist(
    request: Request,
    service: EntityService = Depends(get_waitlist_service),
) -> JSONResponse:
    params = request.query_params
    use_database = parse_use_database(params.get("useDatabase"))
    options = normalize_query_options(params, WAITLIST.query)
    result = await service.list(options, use_database=use_database)
    everything = await service.scan_all(use_database=use_database)

    by_status = Counter(submission.status for submission in everything.value)
    stats = {
        "total": len(everything.value),
        "byStatus": {status.value: by_status.get(status, 0) for status in WaitlistStatus},
    }
    data = {
        **page_payload(result.value.map(WAITLIST.serialize)),
        "stats": stats,
        "filters": dict(options.applied_filters),
    }
    return success_response(
        Operation.LIST, data, combine_sources([result.source, everything.source])
    )


@router.get(
    "/{submission_id}",
    summary="Get a waitlist submission",
    responses={404: {"model": ErrorResponse, "description": "Submission not found"}},
)
async def get_submission(
    submission_id: str,
    request: Request,
    service: EntityService = Depends(get_waitlist_service),
) -> JSONResponse:
    use_database = parse_use_database(request.query_params.get("useDatabase"))
    result = await service.get(submission_id, use_database=use_database)
    return success_response(
        Operation.GET, {"submission": WAITLIST.serialize(result.value)}, result.source
    )


@router.put(
    "/{submission_id}",
    summary="Update a submission's status",
    description="Body ``{status}`` with status one of new, contacted, qualified, rejected.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid status"},
        404: {"model": ErrorResponse, "description": "Submission not found"},
    },
)
async def update_submission_status(
    submission_id: str,
    payload: Dict[str, Any] = Body(...),
    service: EntityService = Depends(get_waitlist_service),
) -> JSONResponse:
    use_database = parse_use_database(payload.pop("useDatabase", None))
    result = await service.update(submission_id, payload, use_database=use_database)
    return success_response(
        Operation.UPDATE, {"submission": WAITLIST.serialize(result.value)}, result.source
    )
