"""
Report generation.

Every matching record is scanned through the entities' source routers, page
by page, then loaded into pandas DataFrames and summarised.  ``system`` and
``custom`` reports combine the user, asset and investment sections; ``custom``
narrows each section with the caller's filters first.  CSV export flattens
the summaries into ``section,metric,value`` rows.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from globaledge.core.exceptions import UnsupportedOperation, ValidationFailure
from globaledge.integration.sources import DataSource, Sourced, combine_sources
from globaledge.models.asset import AssetType
from globaledge.models.common import utcnow
from globaledge.models.investment import InvestmentStatus
from globaledge.models.user import UserRole
from globaledge.schemas.query import parse_date_range
from globaledge.services.entity_service import EntityService

logger = logging.getLogger(__name__)


class ReportType(str, Enum):
    USERS = "users"
    ASSETS = "assets"
    INVESTMENTS = "investments"
    SYSTEM = "system"
    CUSTOM = "custom"


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    PDF = "pdf"


_SECTIONS: Dict[ReportType, tuple] = {
    ReportType.USERS: ("users",),
    ReportType.ASSETS: ("assets",),
    ReportType.INVESTMENTS: ("investments",),
    ReportType.SYSTEM: ("users", "assets", "investments"),
    ReportType.CUSTOM: ("users", "assets", "investments"),
}

_TITLES = {
    ReportType.USERS: "User Report",
    ReportType.ASSETS: "Asset Report",
    ReportType.INVESTMENTS: "Investment Report",
    ReportType.SYSTEM: "System Report",
    ReportType.CUSTOM: "Custom Report",
}


@dataclass(frozen=True)
class ReportFilters:
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    status: Optional[InvestmentStatus] = None
    user_role: Optional[UserRole] = None
    asset_type: Optional[AssetType] = None

    def to_api(self) -> Dict[str, Any]:
        applied = {
            "dateFrom": self.date_from.isoformat() if self.date_from else None,
            "dateTo": self.date_to.isoformat() if self.date_to else None,
            "status": self.status.value if self.status else None,
            "userRole": self.user_role.value if self.user_role else None,
            "assetType": self.asset_type.value if self.asset_type else None,
        }
        return {key: value for key, value in applied.items() if value is not None}


def _choice(enum_cls: Any, name: str, value: Any) -> Any:
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationFailure(name, f"must be one of {allowed}")


def parse_report_type(raw: Optional[str]) -> ReportType:
    return _choice(ReportType, "type", raw) or ReportType.SYSTEM


def parse_report_format(raw: Optional[str]) -> ReportFormat:
    return _choice(ReportFormat, "format", raw) or ReportFormat.JSON


def parse_report_filters(raw: Optional[str]) -> ReportFilters:
    """Parse the JSON ``filters`` query parameter of a custom report."""
    if not raw:
        return ReportFilters()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationFailure("filters", "must be a JSON object")
    if not isinstance(data, dict):
        raise ValidationFailure("filters", "must be a JSON object")

    date_from, date_to = parse_date_range(
        {
            "dateFrom": data.get("dateFrom") or data.get("startDate"),
            "dateTo": data.get("dateTo") or data.get("endDate"),
        }
    )
    return ReportFilters(
        date_from=date_from,
        date_to=date_to,
        status=_choice(InvestmentStatus, "status", data.get("status")),
        user_role=_choice(UserRole, "userRole", data.get("userRole")),
        asset_type=_choice(AssetType, "assetType", data.get("assetType")),
    )


# ── Summaries ──


def _frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame.from_records(records)


def _counts(df: pd.DataFrame, column: str) -> Dict[str, int]:
    if df.empty:
        return {}
    return {str(key): int(value) for key, value in df[column].value_counts().sort_index().items()}


def _sum(df: pd.DataFrame, column: str) -> float:
    return 0.0 if df.empty else round(float(df[column].sum()), 2)


def _mean(df: pd.DataFrame, column: str) -> float:
    return 0.0 if df.empty else round(float(df[column].mean()), 2)


def summarize_users(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    df = _frame(records)
    return {
        "total": int(len(df)),
        "byRole": _counts(df, "role"),
        "byKycStatus": _counts(df, "kycStatus"),
        "byCountry": _counts(df, "country"),
        "totalInvested": _sum(df, "totalInvested"),
    }


def summarize_assets(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    df = _frame(records)
    return {
        "total": int(len(df)),
        "byType": _counts(df, "type"),
        "byStatus": _counts(df, "status"),
        "totalValue": _sum(df, "value"),
        "averageFundedPercentage": _mean(df, "fundedPercentage"),
        "averageApr": _mean(df, "apr"),
    }


def summarize_investments(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    df = _frame(records)
    return {
        "total": int(len(df)),
        "byStatus": _counts(df, "status"),
        "byPaymentStatus": _counts(df, "paymentStatus"),
        "totalAmount": _sum(df, "amount"),
        "averageAmount": _mean(df, "amount"),
        "totalFees": _sum(df, "totalFees"),
        "totalTokens": int(_sum(df, "tokens")),
    }


_SUMMARIZERS = {
    "users": summarize_users,
    "assets": summarize_assets,
    "investments": summarize_investments,
}


def to_csv(report: Mapping[str, Any]) -> str:
    """Flatten report sections into ``section,metric,value`` CSV text."""
    rows = []
    for section, metrics in report["sections"].items():
        for metric, value in metrics.items():
            if isinstance(value, dict):
                for key, count in value.items():
                    rows.append({"section": section, "metric": f"{metric}.{key}", "value": count})
            else:
                rows.append({"section": section, "metric": metric, "value": value})
    frame = pd.DataFrame(rows, columns=["section", "metric", "value"], dtype=object)
    return frame.to_csv(index=False)


class ReportService:
    def __init__(self, users: EntityService, assets: EntityService, investments: EntityService):
        self._services = {"users": users, "assets": assets, "investments": investments}

    def _section_filters(self, section: str, filters: ReportFilters) -> Dict[str, Any]:
        if section == "users" and filters.user_role:
            return {"role": filters.user_role}
        if section == "assets" and filters.asset_type:
            return {"type": filters.asset_type}
        if section == "investments" and filters.status:
            return {"status": filters.status}
        return {}

    async def generate(
        self,
        report_type: ReportType,
        report_format: ReportFormat = ReportFormat.JSON,
        filters: Optional[ReportFilters] = None,
        use_database: bool = True,
    ) -> Sourced[Dict[str, Any]]:
        """
        Build a report.  Raises :class:`UnsupportedOperation` for PDF output,
        which this service does not render.
        """
        if report_format is ReportFormat.PDF:
            raise UnsupportedOperation("PDF reports are not available; request json or csv")

        filters = filters if report_type is ReportType.CUSTOM and filters else ReportFilters()
        sections: Dict[str, Any] = {}
        sources: List[DataSource] = []
        for section in _SECTIONS[report_type]:
            service = self._services[section]
            dated = section == "investments"
            scanned = await service.scan_all(
                use_database=use_database,
                filters=self._section_filters(section, filters),
                date_from=filters.date_from if dated else None,
                date_to=filters.date_to if dated else None,
            )
            sources.append(scanned.source)
            records = [service.entity.serialize(record) for record in scanned.value]
            sections[section] = _SUMMARIZERS[section](records)

        source = combine_sources(sources)
        generated_at = utcnow()
        report: Dict[str, Any] = {
            "reportType": report_type.value,
            "title": _TITLES[report_type],
            "generatedAt": generated_at.isoformat(),
            "filters": filters.to_api(),
            "sections": sections,
        }
        if report_format is ReportFormat.CSV:
            report["export"] = {
                "filename": f"{report_type.value}-report-{generated_at:%Y%m%d%H%M%S}.csv",
                "contentType": "text/csv",
                "content": to_csv(report),
            }
        logger.info(
            "Generated %s report (%s)",
            report_type.value,
            report_format.value,
            extra={"source": source.value},
        )
        return Sourced(report, source)
