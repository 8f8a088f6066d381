"""
V1 API router aggregation.

All versioned endpoint routers are mounted here under a common prefix.
The top-level ``main.py`` mounts this router at ``/api/v1``.
"""

from fastapi import APIRouter

from globaledge.api.v1.endpoints import (
    analytics,
    integration,
    investments,
    reports,
    search,
    users,
    waitlist,
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(investments.router, prefix="/investments", tags=["Investments"])
api_router.include_router(waitlist.router, prefix="/waitlist", tags=["Waitlist"])

# Search, reports and analytics sit beside the per-entity integration routers.
api_router.include_router(search.router, prefix="/integration/search", tags=["Search"])
api_router.include_router(reports.router, prefix="/integration/reports", tags=["Reports"])
api_router.include_router(analytics.router, prefix="/integration", tags=["Analytics"])
api_router.include_router(integration.router, prefix="/integration")
