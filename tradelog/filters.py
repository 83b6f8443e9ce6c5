"""
filters.py
----------

Filter and sort pipeline for the trade list and the analytics scopes.

Each predicate is optional; an unset field places no constraint. The list
view filters on plain calendar ``year`` while the dashboard and reports
filter on ``financial_year``; both are supported and may be combined.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .fiscal import financial_year, to_local
from .models import Trade, TradeCategory, TradeStatus

ZERO = Decimal("0")


class SortOption(str, Enum):
    DATE_DESC = "Newest First"
    DATE_ASC = "Oldest First"
    NAME_ASC = "Symbol (A-Z)"
    PROFIT_DESC = "Highest Profit"
    PROFIT_ASC = "Lowest Profit"


@dataclass
class FilterState:
    category: Optional[TradeCategory] = None
    status: Optional[TradeStatus] = None
    month: Optional[int] = None
    year: Optional[int] = None
    financial_year: Optional[int] = None
    search_text: str = ""
    sort_option: SortOption = SortOption.DATE_DESC

    def __post_init__(self) -> None:
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12, got {self.month}")


def _predicates(state: FilterState) -> List[Callable[[Trade], bool]]:
    preds: List[Callable[[Trade], bool]] = []
    if state.category is not None:
        preds.append(lambda t: t.category == state.category)
    if state.status is not None:
        preds.append(lambda t: t.status == state.status)
    if state.month is not None:
        preds.append(lambda t: to_local(t.date).month == state.month)
    if state.year is not None:
        preds.append(lambda t: to_local(t.date).year == state.year)
    if state.financial_year is not None:
        preds.append(lambda t: financial_year(t.date) == state.financial_year)
    needle = state.search_text.casefold()
    if needle:
        preds.append(lambda t: needle in t.symbol.casefold())
    return preds


def _net_or_zero(trade: Trade) -> Decimal:
    net = trade.net_pnl
    return ZERO if net is None else net


def sort_trades(trades: Iterable[Trade], option: SortOption) -> List[Trade]:
    """Return a new list ordered by ``option``. Unrealised P&L sorts as 0."""
    if option == SortOption.DATE_DESC:
        return sorted(trades, key=lambda t: to_local(t.date), reverse=True)
    if option == SortOption.DATE_ASC:
        return sorted(trades, key=lambda t: to_local(t.date))
    if option == SortOption.NAME_ASC:
        return sorted(trades, key=lambda t: t.symbol)
    if option == SortOption.PROFIT_DESC:
        return sorted(trades, key=_net_or_zero, reverse=True)
    if option == SortOption.PROFIT_ASC:
        return sorted(trades, key=_net_or_zero)
    raise ValueError(f"unknown sort option: {option!r}")


def filter_trades(trades: Iterable[Trade], state: FilterState) -> List[Trade]:
    """Apply every active predicate of ``state`` and sort the survivors.

    The input is never mutated; the result is a fresh list.
    """
    preds = _predicates(state)
    kept = [t for t in trades if all(p(t) for p in preds)]
    return sort_trades(kept, state.sort_option)


def filter_by_period(
    trades: Iterable[Trade],
    fy: Optional[int] = None,
    month: Optional[int] = None,
) -> List[Trade]:
    """Narrow to a financial year and/or month, keeping the input order."""
    state = FilterState(month=month, financial_year=fy)
    preds = _predicates(state)
    return [t for t in trades if all(p(t) for p in preds)]
