"""
Tests for financial-year and calendar-day bucketing.
"""

from datetime import date, datetime, timezone

from tradelog.fiscal import (
    available_financial_years,
    available_years,
    calendar_year,
    calendar_day_key,
    financial_year,
    fy_bounds,
    fy_label,
    month_days,
    whole_days_between,
)
from tradelog.models import Trade


class TestFinancialYear:
    def test_march_belongs_to_previous_year(self):
        assert financial_year(datetime(2024, 3, 15)) == 2023

    def test_april_starts_new_year(self):
        assert financial_year(datetime(2024, 4, 2)) == 2024

    def test_boundaries(self):
        """1 April is the first day, 31 March the last."""
        assert financial_year(datetime(2024, 4, 1, 0, 0)) == 2024
        assert financial_year(datetime(2025, 3, 31, 23, 59)) == 2024

    def test_aware_datetime_uses_ist(self):
        """31 Mar 20:00 UTC is already 1 Apr in India."""
        assert financial_year(datetime(2024, 3, 31, 20, 0, tzinfo=timezone.utc)) == 2024

    def test_label_and_bounds(self):
        assert fy_label(2024) == 'FY 24-25'
        assert fy_label(1999) == 'FY 99-00'
        assert fy_bounds(2023) == (datetime(2023, 4, 1), datetime(2024, 4, 1))

    def test_calendar_year_of_fy_month(self):
        assert calendar_year(2024, 4) == 2024
        assert calendar_year(2024, 12) == 2024
        assert calendar_year(2024, 1) == 2025
        assert calendar_year(2024, 3) == 2025


class TestDayKey:
    def test_same_day_same_key(self):
        """Time of day never splits a bucket."""
        assert calendar_day_key(datetime(2024, 6, 1, 0, 1)) == calendar_day_key(datetime(2024, 6, 1, 23, 59))
        assert calendar_day_key(datetime(2024, 6, 1, 9, 15)) == date(2024, 6, 1)

    def test_whole_days(self):
        assert whole_days_between(datetime(2024, 1, 1, 10), datetime(2024, 1, 3, 9)) == 1
        assert whole_days_between(datetime(2024, 1, 1, 10), datetime(2024, 1, 3, 10)) == 2


class TestAvailableYears:
    def test_distinct_descending(self):
        trades = [
            Trade(date=datetime(2023, 3, 1)),
            Trade(date=datetime(2024, 5, 1)),
            Trade(date=datetime(2024, 2, 1)),
            Trade(date=datetime(2023, 7, 1)),
        ]
        assert available_financial_years(trades) == [2024, 2023, 2022]
        assert available_years(trades) == [2024, 2023]

    def test_empty(self):
        assert available_financial_years([]) == []


class TestMonthDays:
    def test_padding_starts_on_sunday(self):
        """June 2024 starts on a Saturday: six padding cells."""
        days = month_days(2024, 6)
        assert days[:6] == [None] * 6
        assert days[6] == date(2024, 6, 1)
        assert len(days) == 6 + 30

    def test_month_starting_sunday(self):
        """September 2024 starts on a Sunday: no padding."""
        days = month_days(2024, 9)
        assert days[0] == date(2024, 9, 1)
