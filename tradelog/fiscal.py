"""
fiscal.py
---------

Date bucketing used by every time-based view of the journal. Financial
years run April to March and are labelled by the calendar year they start
in, so 15 March 2024 belongs to FY 2023 and 2 April 2024 to FY 2024.

All helpers work on naive local datetimes. Timezone-aware values are first
converted to IST (the journal's home market) and stripped, so two
timestamps on the same Indian calendar day always land in the same bucket.
"""

import calendar
from datetime import date, datetime
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")

FY_START_MONTH = 4


def to_local(dt: datetime) -> datetime:
    """Return ``dt`` as a naive IST datetime (naive inputs pass through)."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(IST).replace(tzinfo=None)


def financial_year(dt: datetime) -> int:
    """FY start year for ``dt``: its year from April on, the previous year before."""
    local = to_local(dt)
    return local.year if local.month >= FY_START_MONTH else local.year - 1


def fy_label(fy: int) -> str:
    """Display label, e.g. ``2024 -> 'FY 24-25'``."""
    return f"FY {fy % 100:02d}-{(fy + 1) % 100:02d}"


def fy_bounds(fy: int) -> tuple:
    """Return ``(start, end)`` datetimes covering FY ``fy`` (end exclusive)."""
    return datetime(fy, FY_START_MONTH, 1), datetime(fy + 1, FY_START_MONTH, 1)


def calendar_year(fy: int, month: int) -> int:
    """Calendar year in which ``month`` of financial year ``fy`` falls."""
    return fy if month >= FY_START_MONTH else fy + 1


def calendar_day_key(dt: datetime) -> date:
    """Truncate a timestamp to its local calendar day."""
    return to_local(dt).date()


def whole_days_between(start: datetime, end: datetime) -> int:
    """Number of complete 24h periods from ``start`` to ``end`` (may be negative)."""
    return (to_local(end) - to_local(start)).days


def available_financial_years(trades: Iterable) -> List[int]:
    """Distinct financial years present in ``trades``, newest first."""
    return sorted({financial_year(t.date) for t in trades}, reverse=True)


def available_years(trades: Iterable) -> List[int]:
    """Distinct plain calendar years present in ``trades``, newest first."""
    return sorted({to_local(t.date).year for t in trades}, reverse=True)


def month_days(year: int, month: int) -> List[Optional[date]]:
    """
    Days of a month laid out for a Sunday-first week grid.

    Leading ``None`` entries pad the first week so that index 0 is a Sunday.
    """
    first_weekday, n_days = calendar.monthrange(year, month)
    # calendar.monthrange counts Monday as 0
    padding = (first_weekday + 1) % 7
    days: List[Optional[date]] = [None] * padding
    days.extend(date(year, month, d) for d in range(1, n_days + 1))
    return days
