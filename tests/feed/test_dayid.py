"""Tests for remark.feed.dayid."""

from datetime import date, datetime

import pytest

from remark.core.exceptions import InvalidDayIdError
from remark.feed.dayid import (
    as_date,
    format_mdy,
    is_future,
    parse_day_id,
    shift_day,
    to_day_id,
    to_parts,
    today_utc,
    validate_day_id,
)

pytestmark = pytest.mark.smoke


class TestParse:
    def test_roundtrip(self):
        assert parse_day_id("2024-02-29") == date(2024, 2, 29)
        assert to_day_id(date(2024, 2, 29)) == "2024-02-29"

    @pytest.mark.parametrize("bad", ["2024-2-29", "2023-02-29", "20240229", "2024-13-01", "", "2024-01-01T00:00"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(InvalidDayIdError):
            parse_day_id(bad)

    def test_rejects_non_string(self):
        with pytest.raises(InvalidDayIdError):
            validate_day_id(20240101)  # type: ignore[arg-type]

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            validate_day_id("yesterday")


class TestArithmetic:
    def test_shift_across_month_and_year(self):
        assert shift_day("2024-03-01", -1) == "2024-02-29"
        assert shift_day("2023-12-31", 1) == "2024-01-01"

    def test_as_date_accepts_all_forms(self):
        assert as_date("2024-07-15") == date(2024, 7, 15)
        assert as_date(date(2024, 7, 15)) == date(2024, 7, 15)
        assert as_date(datetime(2024, 7, 15, 23, 59)) == date(2024, 7, 15)

    def test_lexicographic_order_is_chronological(self):
        ids = [to_day_id(date(2023, 12, 31)), to_day_id(date(2024, 1, 1)), to_day_id(date(2024, 10, 2))]
        assert ids == sorted(ids)

    def test_is_future(self):
        assert is_future("2024-07-16", "2024-07-15")
        assert not is_future("2024-07-15", "2024-07-15")
        assert not is_future("2024-07-14", "2024-07-15")

    def test_today_utc_is_a_date(self):
        today = today_utc()
        assert isinstance(today, date) and not isinstance(today, datetime)


class TestFormatting:
    def test_format_mdy(self):
        assert format_mdy("2026-10-07") == "10-07-2026"

    def test_format_mdy_empty(self):
        assert format_mdy("") == ""

    def test_to_parts(self):
        parts = to_parts("2026-10-07")
        assert (parts.mo, parts.day, parts.yr) == ("OCT", "07", "2026")

    def test_to_parts_january(self):
        assert to_parts("2024-01-31").mo == "JAN"
