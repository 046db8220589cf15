"""
Unit tests for utils/normalize.py

Tests the cell and flag normalizers to ensure:
- Lenient leading-number parsing of table cells
- Strict snapshot date handling
- Clear ValidationError messages
"""

import pytest
from datetime import date, datetime, timezone, timedelta

from utils.normalize import (
    ValidationError,
    collapse_whitespace,
    parse_leading_float,
    to_bool,
    to_iso_timestamp,
    to_snapshot_date,
    to_title_format,
)


class TestParseLeadingFloat:
    """Tests for parse_leading_float()"""

    def test_plain_number(self):
        assert parse_leading_float("4.50") == 4.5

    def test_trailing_text_ignored(self):
        assert parse_leading_float("4.50%") == 4.5
        assert parse_leading_float("5.25 (special)") == 5.25

    def test_surrounding_whitespace(self):
        assert parse_leading_float("  6.99 ") == 6.99

    def test_leading_dot(self):
        assert parse_leading_float(".5") == 0.5

    def test_no_number(self):
        assert parse_leading_float("n/a") is None
        assert parse_leading_float("-") is None
        assert parse_leading_float("") is None
        assert parse_leading_float(None) is None

    def test_number_not_leading(self):
        assert parse_leading_float("from 4.5") is None

    def test_overflow_is_not_finite(self):
        assert parse_leading_float("1e999") is None


class TestCollapseWhitespace:
    def test_collapses(self):
        assert collapse_whitespace("  Co-operative \n  Bank ") == "Co-operative Bank"

    def test_none(self):
        assert collapse_whitespace(None) == ""


class TestToTitleFormat:
    def test_first_char_only(self):
        assert to_title_format("airpoints card") == "Airpoints card"
        assert to_title_format("oneSmart") == "OneSmart"

    def test_empty(self):
        assert to_title_format("") == ""


class TestToBool:
    """Tests for to_bool()"""

    def test_true_values(self):
        for value in ("true", "TRUE", "1", "yes", "on"):
            assert to_bool(value) is True

    def test_false_values(self):
        for value in ("false", "0", "no", "Off"):
            assert to_bool(value) is False

    def test_missing_uses_default(self):
        assert to_bool(None) is False
        assert to_bool("", default=True) is True

    def test_invalid_raises(self):
        with pytest.raises(ValidationError) as exc:
            to_bool("maybe", field="ALLOW_SUSPICIOUS_DATA")
        assert exc.value.field == "ALLOW_SUSPICIOUS_DATA"
        assert exc.value.received_value == "maybe"


class TestToSnapshotDate:
    """Tests for to_snapshot_date()"""

    def test_valid_string(self):
        assert to_snapshot_date("2024-03-01") == "2024-03-01"

    def test_date_and_datetime(self):
        assert to_snapshot_date(date(2024, 3, 1)) == "2024-03-01"
        assert to_snapshot_date(datetime(2024, 3, 1, 23, 59)) == "2024-03-01"

    def test_not_zero_padded_raises(self):
        with pytest.raises(ValidationError):
            to_snapshot_date("2024-3-1")

    def test_impossible_date_raises(self):
        with pytest.raises(ValidationError) as exc:
            to_snapshot_date("2024-02-30")
        assert "Invalid calendar date" in str(exc.value)

    def test_field_in_error(self):
        with pytest.raises(ValidationError) as exc:
            to_snapshot_date("yesterday", field="startDate")
        assert exc.value.field == "startDate"


class TestToIsoTimestamp:
    def test_utc_millis_with_z(self):
        value = datetime(2024, 3, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert to_iso_timestamp(value) == "2024-03-01T10:00:00.123Z"

    def test_naive_assumed_utc(self):
        assert to_iso_timestamp(datetime(2024, 3, 1, 10, 0)) == "2024-03-01T10:00:00.000Z"

    def test_converted_to_utc(self):
        nz = timezone(timedelta(hours=13))
        value = datetime(2024, 3, 2, 9, 0, tzinfo=nz)
        assert to_iso_timestamp(value) == "2024-03-01T20:00:00.000Z"
