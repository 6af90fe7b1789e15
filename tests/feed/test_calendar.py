"""Tests for remark.feed.calendar."""

from datetime import date

import pytest

from remark.feed.cache import RecordCache
from remark.feed.calendar import (
    CELLS_PER_MONTH,
    CalendarMonths,
    MonthOrder,
    build_month_matrix,
    build_months,
    calendar_cell_view,
    days_in_month,
    format_month_year,
)
from remark.feed.dayid import parse_day_id
from remark.feed.models import DayCell, DayRecord


class TestMonthMatrix:
    def test_grid_starts_on_sunday_before_the_first(self):
        cells = build_month_matrix(2026, 9)  # October 2026, starts on a Thursday
        assert len(cells) == CELLS_PER_MONTH
        assert cells[0].iso == "2026-09-27"
        assert not cells[0].in_current_month
        assert cells[4].iso == "2026-10-01"
        assert cells[4].in_current_month
        assert cells[-1].iso == "2026-11-07"

    def test_month_starting_on_sunday(self):
        cells = build_month_matrix(2026, 1)  # February 2026
        assert cells[0].iso == "2026-02-01"
        assert cells[0].day_of_month == 1
        assert sum(c.in_current_month for c in cells) == 28

    def test_leap_february(self):
        cells = build_month_matrix(2024, 1)
        assert sum(c.in_current_month for c in cells) == 29

    def test_month_index_normalized(self):
        assert build_month_matrix(2024, 12) == build_month_matrix(2025, 0)
        assert build_month_matrix(2024, -1) == build_month_matrix(2023, 11)

    def test_helpers(self):
        assert days_in_month(2024, 1) == 29
        assert format_month_year(2026, 9) == "October 2026"

    @pytest.mark.parametrize("year", range(1999, 2031))
    def test_every_month_is_one_sunday_aligned_run(self, year):
        for month_index in range(12):
            cells = build_month_matrix(year, month_index)
            assert len(cells) == CELLS_PER_MONTH
            assert parse_day_id(cells[0].iso).weekday() == 6

            flags = [c.in_current_month for c in cells]
            first = flags.index(True)
            run = flags[first:].index(False) if False in flags[first:] else len(flags) - first
            assert run == days_in_month(year, month_index)
            assert not any(flags[first + run :])
            assert cells[first].iso == f"{year}-{month_index + 1:02d}-01"
            days = [parse_day_id(c.iso) for c in cells]
            assert all((b - a).days == 1 for a, b in zip(days, days[1:]))


class TestBuildMonths:
    def test_ascending_ends_at_anchor_month(self):
        months = build_months(date(2024, 7, 15), 3)
        assert [(m.year, m.month_index) for m in months] == [(2024, 4), (2024, 5), (2024, 6)]
        assert [m.offset_from_current for m in months] == [2, 1, 0]
        assert months[-1].label == "July 2024"

    def test_descending_starts_at_anchor_month(self):
        months = build_months("2024-02-10", 3, MonthOrder.DESCENDING)
        assert [m.label for m in months] == ["February 2024", "January 2024", "December 2023"]

    def test_never_produces_future_months(self):
        anchor = date(2024, 7, 15)
        for month in build_months(anchor, 24):
            assert (month.year, month.month_index) <= (2024, 6)

    def test_start_offset_pages_backwards(self):
        months = build_months(date(2024, 7, 15), 2, MonthOrder.DESCENDING, start_offset=12)
        assert [m.label for m in months] == ["July 2023", "June 2023"]

    def test_zero_and_negative_count(self):
        assert build_months(date(2024, 7, 15), 0) == []
        with pytest.raises(ValueError):
            build_months(date(2024, 7, 15), -1)


class TestCellView:
    @pytest.fixture
    def cache(self):
        cache = RecordCache()
        cache.set("2024-07-14", DayRecord.present(cover_ref="thumb/0714.jpg"))
        cache.set("2024-07-16", DayRecord.present(cover_ref="thumb/0716.jpg"))
        cache.set("2024-07-13", DayRecord.absent())
        return cache

    def test_past_day_with_cover(self, cache):
        view = calendar_cell_view(DayCell("2024-07-14", 14, True), cache, "2024-07-15")
        assert view.cover_ref == "thumb/0714.jpg"
        assert view.navigable
        assert not view.is_today

    def test_today(self, cache):
        view = calendar_cell_view(DayCell("2024-07-15", 15, True), cache, "2024-07-15")
        assert view.is_today
        assert view.navigable
        assert view.cover_ref is None

    def test_future_day_never_shows_cover(self, cache):
        view = calendar_cell_view(DayCell("2024-07-16", 16, True), cache, "2024-07-15")
        assert view.is_future
        assert not view.navigable
        assert view.cover_ref is None

    def test_absent_day(self, cache):
        assert calendar_cell_view(DayCell("2024-07-13", 13, True), cache, "2024-07-15").cover_ref is None


class TestCalendarMonths:
    def test_pagination(self, today):
        months = CalendarMonths(today, initial=2, batch=3)
        assert [m.label for m in months.months] == ["June 2024", "July 2024"]

        added = months.load_more_months()
        assert [m.label for m in added] == ["May 2024", "April 2024", "March 2024"]
        assert months.count == 5
        assert months.months[0].label == "March 2024"
        assert months.months[-1].label == "July 2024"

    def test_window_spans_all_months(self, today):
        months = CalendarMonths(today, initial=2, batch=3)
        months.load_more_months()
        window = months.window()
        assert window.start == "2024-03-01"
        assert window.end == "2024-07-31"

    def test_window_across_year_boundary(self):
        window = CalendarMonths(date(2024, 1, 20), initial=3).window()
        assert (window.start, window.end) == ("2023-11-01", "2024-01-31")

    def test_near_end(self, today):
        ascending = CalendarMonths(today, initial=12)
        assert ascending.near_end(1)
        assert not ascending.near_end(10)

        descending = CalendarMonths(today, initial=12, order=MonthOrder.DESCENDING)
        assert descending.near_end(10)
        assert not descending.near_end(1)

    def test_reanchor(self, today):
        months = CalendarMonths(today, initial=2)
        assert months.reanchor(date(2024, 7, 31)) is False
        assert months.reanchor(date(2024, 8, 1)) is True
        assert months.months[-1].label == "August 2024"

    def test_invalid_sizes(self, today):
        with pytest.raises(ValueError):
            CalendarMonths(today, initial=0)
