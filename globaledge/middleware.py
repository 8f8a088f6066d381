"""
HTTP middleware for request tracing and latency reporting.

- ``RequestIDMiddleware`` propagates ``X-Request-ID`` and publishes it to the
  logging context so every log line emitted while serving the request carries
  the same ID.
- ``RequestTimingMiddleware`` adds ``X-Process-Time`` and logs slow requests.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from globaledge.core.logging import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 500


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Attach a request ID to the request, the response and the log context.

    An ``X-Request-ID`` supplied by a gateway is reused; otherwise a UUID4 is
    generated.  The ID is exposed as ``request.state.request_id``.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Report wall-clock duration in ``X-Process-Time`` and warn on slow calls."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"

        extra = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "elapsed_ms": round(elapsed_ms, 2),
        }
        if elapsed_ms > SLOW_REQUEST_MS:
            logger.warning(
                "%s %s → %d in %.2fms (SLOW)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                extra=extra,
            )
        else:
            logger.debug(
                "%s %s → %d in %.2fms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                extra=extra,
            )

        return response
