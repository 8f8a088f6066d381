"""
Domain exceptions and global exception handlers.

Every error leaves the API in the same envelope as a successful call::

    {
        "success": false,
        "error": "<human-readable description>",
        "field": "<offending field, validation errors only>",
        "source": "<database|mock, when a backend was involved>"
    }

The service layer raises the exceptions defined here without importing
FastAPI.  Each exception carries an :class:`ErrorKind`; ``STATUS_BY_KIND``
is the single table that turns a kind into an HTTP status code.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Categories of failure a request can end in."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BUSINESS_RULE = "business_rule"
    UNSUPPORTED = "unsupported"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    INTERNAL = "internal"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BUSINESS_RULE: 422,
    ErrorKind.UNSUPPORTED: 501,
    ErrorKind.BACKEND_UNAVAILABLE: 503,
    ErrorKind.INTERNAL: 500,
}


# ────────────────────────────────────────────────────────────────────────────
# Domain exceptions  (raised by service layer, caught by handlers below)
# ────────────────────────────────────────────────────────────────────────────


class AppException(Exception):
    """Base exception for all application-level errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: Any = None, source: Optional[str] = None):
        self.message = message
        self.details = details
        self.source = source
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        if self.source is not None:
            body["source"] = self.source
        return body


class ValidationFailure(AppException):
    """A request payload or query parameter was rejected (400)."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, reason: str = "is required"):
        self.field = field
        self.reason = reason
        if reason == "is required":
            message = f"Missing required field: {field}"
        else:
            message = f"Invalid value for '{field}': {reason}"
        super().__init__(message)

    def to_envelope(self) -> Dict[str, Any]:
        body = super().to_envelope()
        body["field"] = self.field
        return body


class NotFoundException(AppException):
    """Resource not found (404)."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str, identifier: Any, source: Optional[str] = None):
        super().__init__(f"{resource} with id '{identifier}' not found", source=source)


class ConflictException(AppException):
    """Resource already exists / unique-constraint violation (409)."""

    kind = ErrorKind.CONFLICT


class BusinessRuleViolation(AppException):
    """Business rule was violated (422)."""

    kind = ErrorKind.BUSINESS_RULE


class UnsupportedOperation(AppException):
    """The request names a capability this deployment does not provide (501)."""

    kind = ErrorKind.UNSUPPORTED


class BackendUnavailable(AppException):
    """The persistent store failed and no fallback was permitted (503)."""

    kind = ErrorKind.BACKEND_UNAVAILABLE

    def __init__(self, entity: str, operation: str, cause: Optional[BaseException] = None):
        self.entity = entity
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"Database unavailable: could not {operation} {entity}",
            source="database",
        )


# ────────────────────────────────────────────────────────────────────────────
# FastAPI exception handler registration
# ────────────────────────────────────────────────────────────────────────────


def add_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI application instance."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle domain-specific exceptions raised by the service layer."""
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed with %s: %s",
                request.method,
                request.url.path,
                exc.kind.value,
                exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle standard HTTP exceptions (e.g. 404 from path-not-found)."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Handle FastAPI request-parsing errors (malformed JSON, bad path params).

        Payload field checks happen in the service layer and surface as 400s;
        this handler only sees requests FastAPI could not parse at all.
        """
        errors = []
        for err in exc.errors():
            loc = " -> ".join(str(part) for part in err["loc"])
            errors.append({"field": loc, "message": err["msg"]})
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": "Validation failed", "details": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected exceptions; details go to the log only."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=STATUS_BY_KIND[ErrorKind.INTERNAL],
            content={
                "success": False,
                "error": "Internal Server Error. Please contact support.",
            },
        )
