"""
Shared Pydantic building blocks.

- :class:`CamelModel`: API payloads use camelCase keys, Python code uses
  snake_case attributes.
- :data:`Money`: ``Decimal`` in Python, JSON number on the wire.
- Envelope models documenting the success and error shapes in OpenAPI.
"""

from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

Money = Annotated[
    Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")
]


class CamelModel(BaseModel):
    """Base model reading and writing camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class PageResponse(CamelModel):
    """Paginated list payload returned by the plain ``/users`` and ``/investments`` routes."""

    items: List[Any]
    total_count: int
    page: int
    page_size: int
    has_more: bool


class SuccessEnvelope(BaseModel):
    """Every successful response: the payload plus the backend that produced it."""

    success: bool = Field(default=True)
    data: Any
    source: str = Field(..., examples=["database"], description="'database' or 'mock'")


class PageEnvelope(SuccessEnvelope):
    data: PageResponse


class ErrorResponse(BaseModel):
    """Standard error envelope returned by all error handlers."""

    success: bool = Field(default=False, description="Always ``false`` for errors")
    error: str = Field(
        ..., description="Human-readable error description", examples=["Asset not found"]
    )
    field: Optional[str] = Field(
        default=None,
        description="Offending field for validation errors",
        examples=["email"],
    )
    source: Optional[str] = Field(default=None, examples=["database"])


class ValidationErrorDetail(BaseModel):
    """Single field-level parsing failure."""

    field: str = Field(..., examples=["body"])
    message: str = Field(..., examples=["JSON decode error"])


class ValidationErrorResponse(BaseModel):
    """Response body for 422 (request could not be parsed)."""

    success: bool = Field(default=False)
    error: str = Field(default="Validation failed")
    details: List[ValidationErrorDetail]
