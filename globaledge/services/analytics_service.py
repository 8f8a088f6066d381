"""
Platform analytics and compliance statistics.

``overview`` reuses the report summarizers: type ``all`` returns the user,
asset and investment summaries plus headline totals, any other type returns
that one summary.  ``security_stats`` counts security forms, waitlist
submissions and users by status; every enum value appears, with zero when no
record has it.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Type

import pandas as pd

from globaledge.core.exceptions import ValidationFailure
from globaledge.integration.sources import DataSource, Sourced, combine_sources
from globaledge.models.common import utcnow
from globaledge.models.security_form import SecurityFormStatus, SecurityFormType
from globaledge.models.user import KycStatus, UserStatus
from globaledge.models.waitlist import WaitlistStatus
from globaledge.services.entity_service import EntityService
from globaledge.services.report_service import (
    summarize_assets,
    summarize_investments,
    summarize_users,
)

logger = logging.getLogger(__name__)


class AnalyticsType(str, Enum):
    USERS = "users"
    ASSETS = "assets"
    INVESTMENTS = "investments"
    ALL = "all"


_SECTIONS = {
    AnalyticsType.USERS: ("users",),
    AnalyticsType.ASSETS: ("assets",),
    AnalyticsType.INVESTMENTS: ("investments",),
    AnalyticsType.ALL: ("users", "assets", "investments"),
}

_SUMMARIZERS = {
    "users": summarize_users,
    "assets": summarize_assets,
    "investments": summarize_investments,
}

_OVERVIEW_KEYS = {
    "users": "userAnalytics",
    "assets": "assetAnalytics",
    "investments": "investmentAnalytics",
}


def parse_analytics_type(raw: Optional[str]) -> AnalyticsType:
    if not raw:
        return AnalyticsType.ALL
    try:
        return AnalyticsType(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in AnalyticsType)
        raise ValidationFailure("type", f"must be one of {allowed}")


def enum_counts(
    records: List[Dict[str, Any]], column: str, enum_cls: Type[Enum]
) -> Dict[str, int]:
    """Count ``column`` values per member of ``enum_cls``."""
    counts = pd.Series([record[column] for record in records], dtype=object).value_counts()
    return {member.value: int(counts.get(member.value, 0)) for member in enum_cls}


class AnalyticsService:
    def __init__(
        self,
        users: EntityService,
        assets: EntityService,
        investments: EntityService,
        security_forms: EntityService,
        waitlist: EntityService,
    ):
        self._services = {
            "users": users,
            "assets": assets,
            "investments": investments,
            "security_forms": security_forms,
            "waitlist": waitlist,
        }

    async def _records(self, name: str, use_database: bool) -> Sourced[List[Dict[str, Any]]]:
        service = self._services[name]
        scanned = await service.scan_all(use_database=use_database)
        records = [service.entity.serialize(record) for record in scanned.value]
        return Sourced(records, scanned.source, scanned.fallback_reason)

    async def overview(
        self, analytics_type: AnalyticsType = AnalyticsType.ALL, use_database: bool = True
    ) -> Sourced[Dict[str, Any]]:
        sections: Dict[str, Dict[str, Any]] = {}
        sources: List[DataSource] = []
        for name in _SECTIONS[analytics_type]:
            scanned = await self._records(name, use_database)
            sources.append(scanned.source)
            sections[name] = _SUMMARIZERS[name](scanned.value)

        if analytics_type is AnalyticsType.ALL:
            analytics: Dict[str, Any] = {
                _OVERVIEW_KEYS[name]: summary for name, summary in sections.items()
            }
            analytics["summary"] = {
                "totalUsers": sections["users"]["total"],
                "totalAssets": sections["assets"]["total"],
                "totalInvestments": sections["investments"]["total"],
                "totalValue": sections["investments"]["totalAmount"],
            }
        else:
            analytics = sections[analytics_type.value]

        source = combine_sources(sources)
        logger.info("Built %s analytics", analytics_type.value, extra={"source": source.value})
        data = {
            "analytics": analytics,
            "source": source.value,
            "type": analytics_type.value,
            "timestamp": utcnow().isoformat(),
        }
        return Sourced(data, source)

    async def security_stats(self, use_database: bool = True) -> Sourced[Dict[str, Any]]:
        forms = await self._records("security_forms", use_database)
        waitlist = await self._records("waitlist", use_database)
        users = await self._records("users", use_database)

        stats = {
            "securityForms": {
                "total": len(forms.value),
                "byStatus": enum_counts(forms.value, "status", SecurityFormStatus),
                "byType": enum_counts(forms.value, "type", SecurityFormType),
            },
            "waitlist": {
                "total": len(waitlist.value),
                "byStatus": enum_counts(waitlist.value, "status", WaitlistStatus),
            },
            "users": {
                "total": len(users.value),
                "byStatus": enum_counts(users.value, "status", UserStatus),
                "byKycStatus": enum_counts(users.value, "kycStatus", KycStatus),
            },
        }
        source = combine_sources([forms.source, waitlist.source, users.source])
        return Sourced({"stats": stats}, source)
