"""
Cross-entity search over assets, users and investments.

Candidates are scanned through each entity's source router and ranked in
memory:

- exact title match: 100
- title starts with the query: 90
- query found in any searchable field: 70
- otherwise 50 × the fraction of query words found

Records scoring 0 are not results.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from globaledge.core.exceptions import ValidationFailure
from globaledge.integration.sources import DataSource, Sourced, combine_sources
from globaledge.models.common import as_utc
from globaledge.schemas.query import SortOrder, parse_date_range
from globaledge.services.entity_service import EntityService

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

SUGGESTIONS = (
    "shipping containers",
    "real estate properties",
    "trade tokens",
    "vault storage",
    "UAE logistics",
    "blockchain assets",
    "high yield investments",
    "low risk assets",
    "tokenized real estate",
    "container shipping",
    "logistics assets",
    "investment opportunities",
    "asset management",
    "portfolio diversification",
)

POPULAR_SEARCHES = (
    "shipping containers",
    "real estate",
    "trade tokens",
    "vault storage",
    "high yield",
    "low risk",
    "UAE properties",
    "logistics assets",
    "blockchain",
    "tokenized assets",
)


class SearchType(str, Enum):
    ASSET = "asset"
    USER = "user"
    INVESTMENT = "investment"
    ALL = "all"


class SearchSort(str, Enum):
    RELEVANCE = "relevance"
    DATE = "date"
    VALUE = "value"
    NAME = "name"


@dataclass(frozen=True)
class SearchCriteria:
    query: str
    type: SearchType = SearchType.ALL
    category: Optional[str] = None
    status: Optional[str] = None
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    sort_by: SearchSort = SearchSort.RELEVANCE
    sort_order: SortOrder = SortOrder.DESC
    limit: int = DEFAULT_LIMIT
    offset: int = 0


@dataclass
class SearchHit:
    id: str
    type: SearchType
    title: str
    description: str
    category: str
    status: str
    value: Decimal
    created_at: datetime
    metadata: Dict[str, Any]
    text: Sequence[str]
    relevance: float = 0.0

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "status": self.status,
            "value": float(self.value),
            "relevanceScore": round(self.relevance, 2),
            "createdAt": self.created_at.isoformat(),
            "metadata": self.metadata,
        }


@dataclass
class SearchPage:
    results: List[SearchHit]
    total: int
    criteria: SearchCriteria


# ── Criteria parsing ──


def _int_or(raw: Any, default: int) -> int:
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _decimal_or_none(name: str, raw: Any) -> Optional[Decimal]:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValidationFailure(name, "must be a number")
    if not value.is_finite():
        raise ValidationFailure(name, "must be a number")
    return value


def _enum_or(enum_cls: Any, raw: Any, default: Any) -> Any:
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        return default


def criteria_from_params(params: Mapping[str, Any]) -> SearchCriteria:
    """Parse search query parameters; ``q`` is required, everything else is optional."""
    query = str(params.get("q") or "").strip()
    if not query:
        raise ValidationFailure("q")

    range_params = {
        "dateFrom": params.get("dateFrom") or params.get("startDate"),
        "dateTo": params.get("dateTo") or params.get("endDate"),
    }
    date_from, date_to = parse_date_range(range_params)

    return SearchCriteria(
        query=query,
        type=_enum_or(SearchType, params.get("type") or "all", SearchType.ALL),
        category=(str(params["category"]).strip() or None) if params.get("category") else None,
        status=(str(params["status"]).strip() or None) if params.get("status") else None,
        min_value=_decimal_or_none("minValue", params.get("minValue")),
        max_value=_decimal_or_none("maxValue", params.get("maxValue")),
        date_from=date_from,
        date_to=date_to,
        sort_by=_enum_or(SearchSort, params.get("sortBy") or "", SearchSort.RELEVANCE),
        sort_order=_enum_or(SortOrder, params.get("sortOrder") or "", SortOrder.DESC),
        limit=min(max(1, _int_or(params.get("limit"), DEFAULT_LIMIT)), MAX_LIMIT),
        offset=max(0, _int_or(params.get("offset"), 0)),
    )


def criteria_from_body(body: Mapping[str, Any]) -> SearchCriteria:
    """Parse a ``{query, filters: {...}, options: {...}}`` search body."""
    filters = body.get("filters") or {}
    options = body.get("options") or {}
    if not isinstance(filters, Mapping):
        raise ValidationFailure("filters", "must be an object")
    if not isinstance(options, Mapping):
        raise ValidationFailure("options", "must be an object")
    return criteria_from_params({"q": body.get("query") or body.get("q"), **filters, **options})


def suggest(query: str, limit: int = 5) -> List[str]:
    needle = query.strip().lower()
    limit = min(max(1, limit), MAX_LIMIT)
    return [s for s in SUGGESTIONS if needle in s.lower()][:limit]


def popular(limit: int = 10) -> List[str]:
    return list(POPULAR_SEARCHES[: min(max(1, limit), MAX_LIMIT)])


# ── Scoring ──


def score(query: str, title: str, text: Sequence[str]) -> float:
    needle = query.lower()
    title_lower = title.lower()
    if title_lower == needle:
        return 100.0
    if title_lower.startswith(needle):
        return 90.0
    haystack = [title_lower, *(t.lower() for t in text)]
    if any(needle in field for field in haystack):
        return 70.0
    words = needle.split()
    joined = " ".join(haystack)
    found = sum(1 for word in words if word in joined)
    return 50.0 * found / len(words) if words else 0.0


def _asset_hit(asset: Any) -> SearchHit:
    return SearchHit(
        id=asset.id,
        type=SearchType.ASSET,
        title=asset.name,
        description=asset.description,
        category=asset.type.value,
        status=asset.status.value,
        value=asset.value,
        created_at=as_utc(asset.created_at),
        metadata={
            "apr": float(asset.apr),
            "risk": asset.risk.value,
            "fundedPercentage": float(asset.funded_percentage),
        },
        text=(asset.description, asset.type.value),
    )


def _user_hit(user: Any) -> SearchHit:
    return SearchHit(
        id=user.id,
        type=SearchType.USER,
        title=f"{user.first_name} {user.last_name}",
        description=user.email,
        category=user.role.value,
        status=user.status.value,
        value=user.total_invested,
        created_at=as_utc(user.created_at),
        metadata={"country": user.country, "kycStatus": user.kyc_status.value},
        text=(user.email, user.role.value, user.country),
    )


def _investment_hit(investment: Any) -> SearchHit:
    return SearchHit(
        id=investment.id,
        type=SearchType.INVESTMENT,
        title=f"Investment {investment.id}",
        description=f"{investment.tokens} tokens of asset {investment.asset_id}",
        category=investment.payment_method.value,
        status=investment.status.value,
        value=investment.amount,
        created_at=as_utc(investment.created_at),
        metadata={
            "userId": investment.user_id,
            "assetId": investment.asset_id,
            "paymentStatus": investment.payment_status.value,
        },
        text=(investment.asset_id, investment.user_id, investment.status.value),
    )


def _passes_filters(hit: SearchHit, criteria: SearchCriteria) -> bool:
    if criteria.category and hit.category.lower() != criteria.category.lower():
        return False
    if criteria.status and hit.status.lower() != criteria.status.lower():
        return False
    if criteria.min_value is not None and hit.value < criteria.min_value:
        return False
    if criteria.max_value is not None and hit.value > criteria.max_value:
        return False
    if criteria.date_from and hit.created_at < criteria.date_from:
        return False
    if criteria.date_to and hit.created_at > criteria.date_to:
        return False
    return True


_SORT_KEYS = {
    SearchSort.RELEVANCE: lambda hit: hit.relevance,
    SearchSort.DATE: lambda hit: hit.created_at,
    SearchSort.VALUE: lambda hit: hit.value,
    SearchSort.NAME: lambda hit: hit.title.lower(),
}


def rank(hits: List[SearchHit], criteria: SearchCriteria) -> List[SearchHit]:
    """Score, filter and order candidate hits."""
    matched = []
    for hit in hits:
        hit.relevance = score(criteria.query, hit.title, hit.text)
        if hit.relevance > 0 and _passes_filters(hit, criteria):
            matched.append(hit)
    key = _SORT_KEYS[criteria.sort_by]
    matched.sort(key=lambda hit: hit.id)
    matched.sort(key=key, reverse=criteria.sort_order is SortOrder.DESC)
    return matched


class SearchService:
    def __init__(self, users: EntityService, assets: EntityService, investments: EntityService):
        self._users = users
        self._assets = assets
        self._investments = investments

    async def search(
        self, criteria: SearchCriteria, use_database: bool = True
    ) -> Sourced[SearchPage]:
        scans = []
        if criteria.type in (SearchType.ASSET, SearchType.ALL):
            scans.append((self._assets, _asset_hit))
        if criteria.type in (SearchType.USER, SearchType.ALL):
            scans.append((self._users, _user_hit))
        if criteria.type in (SearchType.INVESTMENT, SearchType.ALL):
            scans.append((self._investments, _investment_hit))

        hits: List[SearchHit] = []
        sources: List[DataSource] = []
        for service, to_hit in scans:
            scanned = await service.scan(use_database=use_database)
            sources.append(scanned.source)
            hits.extend(to_hit(record) for record in scanned.value)

        ranked = rank(hits, criteria)
        window = ranked[criteria.offset : criteria.offset + criteria.limit]
        source = combine_sources(sources)
        logger.info(
            "Search '%s' matched %d of %d candidates",
            criteria.query,
            len(ranked),
            len(hits),
            extra={"source": source.value},
        )
        return Sourced(SearchPage(window, len(ranked), criteria), source)
