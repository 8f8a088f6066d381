"""
Write-path validation.

Two steps run before any backend is contacted:

1. :func:`require_fields`: the first required field that is absent or blank
   is reported by name.
2. :func:`parse_payload`: the payload is validated against its Pydantic
   schema; the first schema error is reported the same way.

Both raise :class:`ValidationFailure` (HTTP 400).
"""

from typing import Any, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from globaledge.core.exceptions import ValidationFailure

SchemaType = TypeVar("SchemaType", bound=BaseModel)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def first_missing_field(payload: Mapping[str, Any], required: Sequence[str]) -> Optional[str]:
    """Return the first field of ``required`` with no usable value, in list order.

    ``0`` and ``False`` count as present; range checks belong to the schema.
    """
    for name in required:
        if _is_blank(payload.get(name)):
            return name
    return None


def require_fields(payload: Mapping[str, Any], required: Sequence[str]) -> None:
    missing = first_missing_field(payload, required)
    if missing is not None:
        raise ValidationFailure(missing)


def parse_payload(schema: Type[SchemaType], payload: Mapping[str, Any]) -> SchemaType:
    """Validate ``payload`` against ``schema``, translating the first error."""
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        error = exc.errors()[0]
        location = ".".join(str(part) for part in error["loc"]) or "body"
        raise ValidationFailure(location, error["msg"])
