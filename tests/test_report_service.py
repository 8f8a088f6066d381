"""
Unit tests for report generation: parsing, pandas summaries, CSV export and
unsupported formats.
"""

import csv
import io
from decimal import Decimal

import pytest

from globaledge.core.config import settings
from globaledge.core.exceptions import UnsupportedOperation, ValidationFailure
from globaledge.integration.entities import ASSETS, INVESTMENTS, USERS
from globaledge.integration.sources import DataSource
from globaledge.models.asset import AssetType
from globaledge.models.investment import InvestmentStatus
from globaledge.models.user import UserRole
from globaledge.services.report_service import (
    ReportFormat,
    ReportService,
    ReportType,
    parse_report_filters,
    parse_report_format,
    parse_report_type,
    summarize_assets,
    summarize_investments,
    summarize_users,
)

from .conftest import failing_database, make_investment, make_service, make_user


def _service(store, user_database=None):
    return ReportService(
        users=make_service(USERS, store, database=user_database),
        assets=make_service(ASSETS, store),
        investments=make_service(INVESTMENTS, store),
    )


class TestParsing:
    def test_type_defaults_to_system(self):
        assert parse_report_type(None) is ReportType.SYSTEM

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationFailure) as exc_info:
            parse_report_type("finance")
        assert exc_info.value.field == "type"

    def test_unknown_format_is_rejected(self):
        with pytest.raises(ValidationFailure):
            parse_report_format("xlsx")

    def test_filters(self):
        filters = parse_report_filters(
            '{"startDate": "2024-01-01", "status": "completed", "userRole": "issuer",'
            ' "assetType": "vault"}'
        )
        assert filters.date_from.year == 2024
        assert filters.status is InvestmentStatus.COMPLETED
        assert filters.user_role is UserRole.ISSUER
        assert filters.asset_type is AssetType.VAULT

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '"text"'])
    def test_filters_must_be_an_object(self, raw):
        with pytest.raises(ValidationFailure) as exc_info:
            parse_report_filters(raw)
        assert exc_info.value.field == "filters"


class TestSummaries:
    def test_users(self):
        users = [
            USERS.serialize(make_user(id="a", email="a@x.co", total_invested=Decimal("100"))),
            USERS.serialize(
                make_user(
                    id="b", email="b@x.co", role=UserRole.ISSUER, total_invested=Decimal("50.5")
                )
            ),
        ]
        summary = summarize_users(users)
        assert summary["total"] == 2
        assert summary["byRole"] == {"investor": 1, "issuer": 1}
        assert summary["totalInvested"] == 150.5

    def test_investments(self):
        records = [
            INVESTMENTS.serialize(make_investment(id="i1", amount=Decimal("1000"), tokens=10)),
            INVESTMENTS.serialize(make_investment(id="i2", amount=Decimal("3000"), tokens=30)),
        ]
        summary = summarize_investments(records)
        assert summary["totalAmount"] == 4000.0
        assert summary["averageAmount"] == 2000.0
        assert summary["totalTokens"] == 40
        assert isinstance(summary["total"], int)

    def test_empty_sections(self):
        assert summarize_assets([]) == {
            "total": 0,
            "byType": {},
            "byStatus": {},
            "totalValue": 0.0,
            "averageFundedPercentage": 0.0,
            "averageApr": 0.0,
        }


class TestReportService:
    @pytest.mark.asyncio
    async def test_system_report_has_all_sections(self, seeded_store):
        result = await _service(seeded_store).generate(ReportType.SYSTEM)
        report = result.value
        assert set(report["sections"]) == {"users", "assets", "investments"}
        assert report["sections"]["users"]["total"] == len(seeded_store.all("users"))
        assert report["sections"]["assets"]["total"] == len(seeded_store.all("assets"))
        assert result.source is DataSource.DATABASE

    @pytest.mark.asyncio
    async def test_investments_report_has_only_investments(self, seeded_store):
        report = (await _service(seeded_store).generate(ReportType.INVESTMENTS)).value
        assert list(report["sections"]) == ["investments"]

    @pytest.mark.asyncio
    async def test_custom_filters_narrow_sections(self, seeded_store):
        filters = parse_report_filters('{"assetType": "vault", "userRole": "issuer"}')
        report = (
            await _service(seeded_store).generate(ReportType.CUSTOM, filters=filters)
        ).value
        assert report["sections"]["assets"]["byType"] == {"vault": 2}
        assert set(report["sections"]["users"]["byRole"]) <= {"issuer"}
        assert report["filters"] == {"userRole": "issuer", "assetType": "vault"}

    @pytest.mark.asyncio
    async def test_filters_ignored_for_non_custom_reports(self, seeded_store):
        filters = parse_report_filters('{"assetType": "vault"}')
        report = (
            await _service(seeded_store).generate(ReportType.ASSETS, filters=filters)
        ).value
        assert report["sections"]["assets"]["total"] == 8
        assert report["filters"] == {}

    @pytest.mark.asyncio
    async def test_csv_export(self, seeded_store):
        report = (
            await _service(seeded_store).generate(ReportType.ASSETS, ReportFormat.CSV)
        ).value
        export = report["export"]
        assert export["contentType"] == "text/csv"
        assert export["filename"].startswith("assets-report-")
        rows = list(csv.DictReader(io.StringIO(export["content"])))
        assert {"section": "assets", "metric": "total", "value": "8"} in rows
        assert any(row["metric"] == "byType.vault" for row in rows)

    @pytest.mark.asyncio
    async def test_pdf_is_unsupported(self, seeded_store):
        with pytest.raises(UnsupportedOperation) as exc_info:
            await _service(seeded_store).generate(ReportType.SYSTEM, ReportFormat.PDF)
        assert exc_info.value.status_code == 501

    @pytest.mark.asyncio
    async def test_source_is_mock_when_a_section_fell_back(self, seeded_store):
        service = _service(seeded_store, user_database=failing_database())
        result = await service.generate(ReportType.SYSTEM)
        assert result.source is DataSource.MOCK

    @pytest.mark.asyncio
    async def test_totals_cover_records_beyond_the_scan_limit(self, empty_store, monkeypatch):
        monkeypatch.setattr(settings, "SEARCH_SCAN_LIMIT", 4)
        for i in range(10):
            empty_store.add(
                "investments",
                make_investment(id=f"inv-{i:02d}", amount=Decimal("100.00")),
            )
        report = (await _service(empty_store).generate(ReportType.INVESTMENTS)).value
        section = report["sections"]["investments"]
        assert section["total"] == 10
        assert section["totalAmount"] == 1000.0
