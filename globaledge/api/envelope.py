"""
Success envelopes.

Errors are enveloped by the handlers in ``globaledge.core.exceptions``; this
module builds the matching success side::

    {"success": true, "data": <payload>, "source": "database" | "mock"}
"""

from typing import Any, Dict

from fastapi.responses import JSONResponse

from globaledge.integration.sources import DataSource, Operation, Page, Sourced

SUCCESS_STATUS: Dict[Operation, int] = {
    Operation.GET: 200,
    Operation.LIST: 200,
    Operation.CREATE: 201,
    Operation.UPDATE: 200,
}


def success_response(operation: Operation, data: Any, source: DataSource) -> JSONResponse:
    return JSONResponse(
        status_code=SUCCESS_STATUS[operation],
        content={"success": True, "data": data, "source": source.value},
    )


def page_payload(page: Page) -> Dict[str, Any]:
    """Plain paginated payload: ``{items, totalCount, page, pageSize, hasMore}``."""
    return {
        "items": page.items,
        "totalCount": page.total_count,
        "page": page.page,
        "pageSize": page.page_size,
        "hasMore": page.has_more,
    }


def collection_payload(
    collection: str, result: Sourced[Page], filters: Dict[str, Any]
) -> Dict[str, Any]:
    """Integration list payload, keyed by the entity's collection name."""
    page = result.value
    return {
        collection: page.items,
        "source": result.source.value,
        "count": len(page.items),
        "totalCount": page.total_count,
        "page": page.page,
        "pageSize": page.page_size,
        "hasMore": page.has_more,
        "filters": filters,
    }
