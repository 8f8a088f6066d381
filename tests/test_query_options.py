"""
Unit tests for query option normalization.

Tests cover:
- Pagination defaults and clamping
- Sort whitelist and order parsing
- Enum / free-form filters and the investorId alias
- Date range parsing (inclusive date-only upper bound, rejection of bad ranges)
- The useDatabase flag
"""

from datetime import datetime, timezone

import pytest

from globaledge.core.exceptions import ValidationFailure
from globaledge.integration.entities import ASSETS, INVESTMENTS, USERS, WAITLIST
from globaledge.models.asset import AssetType
from globaledge.models.user import UserRole
from globaledge.schemas.query import (
    MAX_OFFSET,
    SortOrder,
    normalize_query_options,
    parse_date_range,
    parse_use_database,
)


class TestPagination:
    def test_defaults(self):
        options = normalize_query_options({}, USERS.query)
        assert options.page == 1
        assert options.page_size == 10
        assert options.offset == 0

    @pytest.mark.parametrize(
        "raw, expected",
        [("0", 1), ("-4", 1), ("abc", 1), ("3", 3), ("", 1)],
    )
    def test_page_is_clamped_to_one(self, raw, expected):
        assert normalize_query_options({"page": raw}, USERS.query).page == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [("0", 1), ("-1", 1), ("500", 100), ("x", 10), ("25", 25)],
    )
    def test_page_size_is_clamped(self, raw, expected):
        assert normalize_query_options({"pageSize": raw}, USERS.query).page_size == expected

    def test_offset(self):
        options = normalize_query_options({"page": "3", "pageSize": "20"}, USERS.query)
        assert options.offset == 40

    @pytest.mark.parametrize("page_size", ["1", "10", "100"])
    def test_huge_page_keeps_offset_within_int64(self, page_size):
        options = normalize_query_options(
            {"page": str(10**20), "pageSize": page_size}, USERS.query
        )
        assert 0 < options.offset <= MAX_OFFSET
        assert options.offset + options.page_size > MAX_OFFSET


class TestSorting:
    def test_default_sort_is_created_at_desc(self):
        options = normalize_query_options({}, ASSETS.query)
        assert options.sort_by == "created_at"
        assert options.sort_order is SortOrder.DESC

    def test_whitelisted_sort_key_maps_to_attribute(self):
        options = normalize_query_options({"sortBy": "fundedPercentage"}, ASSETS.query)
        assert options.sort_by == "funded_percentage"

    def test_unknown_sort_key_falls_back_to_default(self):
        options = normalize_query_options({"sortBy": "password"}, USERS.query)
        assert options.sort_by == "created_at"

    def test_sort_order_is_case_insensitive(self):
        options = normalize_query_options({"sortOrder": "ASC"}, USERS.query)
        assert options.sort_order is SortOrder.ASC

    def test_invalid_sort_order_uses_default(self):
        options = normalize_query_options({"sortOrder": "sideways"}, USERS.query)
        assert options.sort_order is SortOrder.DESC

    def test_waitlist_defaults_to_submitted_at(self):
        options = normalize_query_options({}, WAITLIST.query)
        assert options.sort_by == "submitted_at"


class TestFilters:
    def test_enum_filter_is_coerced(self):
        options = normalize_query_options({"role": "issuer"}, USERS.query)
        assert options.filters == {"role": UserRole.ISSUER}
        assert options.applied_filters == {"role": "issuer"}

    def test_unknown_enum_value_is_dropped(self):
        options = normalize_query_options({"role": "superuser"}, USERS.query)
        assert options.filters == {}

    def test_free_form_filter_passes_through(self):
        options = normalize_query_options({"country": "Oman"}, USERS.query)
        assert options.filters == {"country": "Oman"}

    def test_blank_filter_is_ignored(self):
        options = normalize_query_options({"country": "  "}, USERS.query)
        assert options.filters == {}

    def test_investor_id_alias(self):
        options = normalize_query_options({"investorId": "user-007"}, INVESTMENTS.query)
        assert options.filters == {"user_id": "user-007"}

    def test_user_id_wins_over_alias(self):
        options = normalize_query_options(
            {"userId": "user-001", "investorId": "user-002"}, INVESTMENTS.query
        )
        assert options.filters == {"user_id": "user-001"}

    def test_asset_type_filter(self):
        options = normalize_query_options({"type": "vault"}, ASSETS.query)
        assert options.filters == {"type": AssetType.VAULT}

    def test_unknown_keys_are_ignored(self):
        options = normalize_query_options({"color": "blue"}, ASSETS.query)
        assert options.filters == {}

    def test_search_text_is_trimmed(self):
        options = normalize_query_options({"q": "  amira "}, USERS.query)
        assert options.search == "amira"
        assert "email" in options.search_fields

    def test_search_ignored_for_entities_without_search_fields(self):
        options = normalize_query_options({"q": "x"}, INVESTMENTS.query)
        assert options.search is None


class TestDateRange:
    def test_date_only_upper_bound_covers_whole_day(self):
        date_from, date_to = parse_date_range({"dateFrom": "2024-01-01", "dateTo": "2024-01-31"})
        assert date_from == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert date_to.date().isoformat() == "2024-01-31"
        assert (date_to.hour, date_to.minute, date_to.second) == (23, 59, 59)

    def test_naive_datetime_is_utc(self):
        date_from, _ = parse_date_range({"dateFrom": "2024-03-05T10:00:00"})
        assert date_from.tzinfo == timezone.utc

    def test_malformed_date_is_rejected(self):
        with pytest.raises(ValidationFailure) as exc_info:
            normalize_query_options({"dateFrom": "last tuesday"}, INVESTMENTS.query)
        assert exc_info.value.field == "dateFrom"

    def test_inverted_range_is_rejected(self):
        with pytest.raises(ValidationFailure) as exc_info:
            normalize_query_options(
                {"dateFrom": "2024-02-01", "dateTo": "2024-01-01"}, INVESTMENTS.query
            )
        assert exc_info.value.field == "dateFrom"

    def test_range_is_echoed_in_applied_filters(self):
        options = normalize_query_options({"dateFrom": "2024-01-01"}, INVESTMENTS.query)
        assert options.applied_filters["dateFrom"].startswith("2024-01-01")


class TestUseDatabase:
    @pytest.mark.parametrize(
        "raw, expected",
        [(None, True), (True, True), (False, False), ("false", False), ("FALSE", False),
         ("0", False), ("true", True), ("anything", True)],
    )
    def test_parse(self, raw, expected):
        assert parse_use_database(raw) is expected
