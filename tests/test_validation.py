"""
Unit tests for the write-path validation gate.
"""

import pytest

from globaledge.core.exceptions import ValidationFailure
from globaledge.core.validation import first_missing_field, parse_payload, require_fields
from globaledge.integration.entities import USERS, WAITLIST
from globaledge.schemas.waitlist import WaitlistCreate

from .conftest import waitlist_payload


class TestFirstMissingField:
    def test_all_present(self):
        assert first_missing_field({"a": 1, "b": "x"}, ["a", "b"]) is None

    def test_reports_first_in_list_order(self):
        assert first_missing_field({"b": "x"}, ["a", "b", "c"]) == "a"

    @pytest.mark.parametrize("blank", [None, "", "   ", [], {}])
    def test_blank_values_count_as_missing(self, blank):
        assert first_missing_field({"a": blank}, ["a"]) == "a"

    @pytest.mark.parametrize("value", [0, False, 0.0])
    def test_zero_and_false_count_as_present(self, value):
        assert first_missing_field({"a": value}, ["a"]) is None

    def test_waitlist_order(self):
        payload = waitlist_payload()
        del payload["phone"]
        del payload["heardFrom"]
        assert first_missing_field(payload, WAITLIST.required_fields) == "phone"


class TestRequireFields:
    def test_raises_with_field_name(self):
        with pytest.raises(ValidationFailure) as exc_info:
            require_fields({"email": "a@b.co"}, USERS.required_fields)
        assert exc_info.value.field == "firstName"
        assert exc_info.value.message == "Missing required field: firstName"
        assert exc_info.value.status_code == 400


class TestParsePayload:
    def test_valid_payload(self):
        parsed = parse_payload(WaitlistCreate, waitlist_payload())
        assert parsed.first_name == "Omar"

    def test_first_schema_error_names_the_camel_case_field(self):
        with pytest.raises(ValidationFailure) as exc_info:
            parse_payload(WaitlistCreate, waitlist_payload(email="not-an-email"))
        assert exc_info.value.field == "email"
        assert "Invalid value for 'email'" in exc_info.value.message
