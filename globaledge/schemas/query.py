"""
Query options: turning raw query-string values into bounded list parameters.

:func:`normalize_query_options` never fails on pagination or sorting input:
bad numbers fall back to defaults, out-of-range numbers are clamped, unknown
sort keys and enum values are dropped.  The only rejected input is a date
range that cannot be parsed or is inverted.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from globaledge.core.config import settings
from globaledge.core.exceptions import ValidationFailure

_FALSE_STRINGS = {"false", "0", "no", "off"}

# Largest OFFSET a signed 64-bit SQL integer holds.
MAX_OFFSET = 2**63 - 1


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterField:
    """A filterable query parameter bound to a model attribute.

    When ``enum`` is set, values outside the enum are ignored rather than
    rejected.
    """

    attribute: str
    enum: Optional[Type[Enum]] = None

    def coerce(self, raw: Any) -> Optional[Any]:
        value = str(raw).strip()
        if not value:
            return None
        if self.enum is None:
            return value
        try:
            return self.enum(value)
        except ValueError:
            return None


@dataclass(frozen=True, eq=False)
class QuerySpec:
    """Per-entity description of what a list request may filter and sort on.

    ``sortable`` maps camelCase API names to model attributes.
    """

    filters: Mapping[str, FilterField]
    sortable: Mapping[str, str]
    default_sort: str = "createdAt"
    default_order: SortOrder = SortOrder.DESC
    date_field: Optional[str] = "created_at"
    search_fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class QueryOptions:
    page: int = 1
    page_size: int = settings.DEFAULT_PAGE_SIZE
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.DESC
    filters: Mapping[str, Any] = field(default_factory=dict)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None
    search_fields: Tuple[str, ...] = ()
    date_field: Optional[str] = None
    # Filters as the caller spelled them, echoed back in list responses.
    applied_filters: Mapping[str, str] = field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _to_int(raw: Any, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _parse_datetime(name: str, raw: Any, end_of_day: bool) -> Optional[datetime]:
    text = str(raw).strip() if raw is not None else ""
    if not text:
        return None
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            parsed = datetime.combine(day, time.max if end_of_day else time.min)
        else:
            parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationFailure(name, "must be an ISO-8601 date or datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date_range(
    params: Mapping[str, Any],
    from_key: str = "dateFrom",
    to_key: str = "dateTo",
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Parse an inclusive date range; a date-only upper bound covers the whole day."""
    date_from = _parse_datetime(from_key, params.get(from_key), end_of_day=False)
    date_to = _parse_datetime(to_key, params.get(to_key), end_of_day=True)
    if date_from and date_to and date_from > date_to:
        raise ValidationFailure(from_key, f"must not be later than {to_key}")
    return date_from, date_to


def parse_use_database(raw: Any) -> bool:
    """Interpret the ``useDatabase`` flag; anything but an explicit false means true."""
    if raw is None:
        return True
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() not in _FALSE_STRINGS


def normalize_query_options(params: Mapping[str, Any], spec: QuerySpec) -> QueryOptions:
    """Build :class:`QueryOptions` from raw query parameters.

    Unknown keys are ignored.  ``page`` is clamped so the resulting offset
    stays within :data:`MAX_OFFSET`.  Raises :class:`ValidationFailure` only
    for a malformed or inverted ``dateFrom``/``dateTo`` range.
    """
    page_size = _to_int(params.get("pageSize"), settings.DEFAULT_PAGE_SIZE)
    page_size = min(max(1, page_size), settings.MAX_PAGE_SIZE)
    page = max(1, _to_int(params.get("page"), 1))
    page = min(page, MAX_OFFSET // page_size + 1)

    raw_order = str(params.get("sortOrder") or "").strip().lower()
    try:
        sort_order = SortOrder(raw_order)
    except ValueError:
        sort_order = spec.default_order

    raw_sort = str(params.get("sortBy") or "").strip()
    sort_key = raw_sort if raw_sort in spec.sortable else spec.default_sort
    sort_by = spec.sortable[sort_key]

    filters: Dict[str, Any] = {}
    applied: Dict[str, str] = {}
    for name, filter_field in spec.filters.items():
        if name not in params:
            continue
        value = filter_field.coerce(params[name])
        if value is None or filter_field.attribute in filters:
            continue
        filters[filter_field.attribute] = value
        applied[name] = value.value if isinstance(value, Enum) else value

    date_from, date_to = (None, None)
    if spec.date_field:
        date_from, date_to = parse_date_range(params)
        if date_from:
            applied["dateFrom"] = date_from.isoformat()
        if date_to:
            applied["dateTo"] = date_to.isoformat()

    search = str(params.get("q") or "").strip() or None
    if search and spec.search_fields:
        applied["q"] = search

    return QueryOptions(
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        filters=filters,
        date_from=date_from,
        date_to=date_to,
        search=search if spec.search_fields else None,
        search_fields=spec.search_fields,
        date_field=spec.date_field,
        applied_filters=applied,
    )
