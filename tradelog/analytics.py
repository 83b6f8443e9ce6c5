"""
analytics.py
-------------

Performance metrics computed from a list of Trade objects. Everything
here is a pure function of its inputs: no store access, no clock reads
except through the optional ``as_of`` argument, no mutation of the
trades passed in. The same function backs both the dashboard (FY + month)
and the reports (FY only) views, so the two can never disagree on what a
metric means.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .filters import filter_by_period
from .fiscal import calendar_day_key
from .models import Trade, TradeCategory, TradeStatus

ZERO = Decimal("0")
RECENT_TRADES_LIMIT = 20


@dataclass
class PeriodStats:
    """Rollup of the realised trades in one period."""

    gross_pnl: Decimal = ZERO
    total_charges: Decimal = ZERO
    total_interest: Decimal = ZERO
    net_pnl: Decimal = ZERO
    win_rate: float = 0.0
    avg_win: Decimal = ZERO
    avg_loss: Decimal = ZERO
    largest_win: Decimal = ZERO
    largest_loss: Decimal = ZERO
    profit_factor: float = 0.0
    realized_count: int = 0
    category_pnl: Dict[TradeCategory, Decimal] = field(default_factory=dict)
    category_charges: Dict[TradeCategory, Decimal] = field(default_factory=dict)
    daily_pnl: Dict[date, Decimal] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view: money as floats, keys as strings."""
        return {
            "gross_pnl": float(self.gross_pnl),
            "total_charges": float(self.total_charges),
            "total_interest": float(self.total_interest),
            "net_pnl": float(self.net_pnl),
            "win_rate": self.win_rate,
            "avg_win": float(self.avg_win),
            "avg_loss": float(self.avg_loss),
            "largest_win": float(self.largest_win),
            "largest_loss": float(self.largest_loss),
            "profit_factor": self.profit_factor,
            "realized_count": self.realized_count,
            "category_pnl": {c.value: float(v) for c, v in self.category_pnl.items()},
            "category_charges": {c.value: float(v) for c, v in self.category_charges.items()},
            "daily_pnl": {d.isoformat(): float(v) for d, v in sorted(self.daily_pnl.items())},
        }


def _mean(values: List[Decimal]) -> Decimal:
    return sum(values, ZERO) / len(values) if values else ZERO


def compute_stats(trades: Iterable[Trade], as_of: Optional[datetime] = None) -> PeriodStats:
    """Compute performance statistics for the given trades.

    Parameters
    ----------
    trades: Iterable[Trade]
        Trades already narrowed to the period of interest. Trades without
        a realised gross P&L are ignored entirely.
    as_of: Optional[datetime]
        Clock used for interest on positions without an exit date.

    Returns
    -------
    PeriodStats
        - gross_pnl / total_charges / total_interest: sums over realised trades
        - net_pnl: gross_pnl - total_charges - total_interest
        - win_rate: percentage of realised trades with net P&L strictly > 0
        - avg_win / avg_loss: mean gross P&L of trades with gross >= 0 / < 0
        - category_pnl / category_charges / daily_pnl: net P&L and charges
          broken down by category and by entry day
    """
    stats = PeriodStats()
    wins: List[Decimal] = []
    losses: List[Decimal] = []
    winning = 0
    category_pnl: Dict[TradeCategory, Decimal] = defaultdict(lambda: ZERO)
    category_charges: Dict[TradeCategory, Decimal] = defaultdict(lambda: ZERO)
    daily_pnl: Dict[date, Decimal] = defaultdict(lambda: ZERO)

    for trade in trades:
        gross = trade.gross_pnl
        if gross is None:
            continue
        charges = trade.charges or ZERO
        interest = trade.interest_as_of(as_of)
        net = gross - charges - interest

        stats.realized_count += 1
        stats.gross_pnl += gross
        stats.total_charges += charges
        stats.total_interest += interest
        if net > 0:
            winning += 1

        # edge metrics stay on gross so costs don't blur strategy quality
        if gross >= 0:
            wins.append(gross)
        else:
            losses.append(gross)

        category_pnl[trade.category] += net
        category_charges[trade.category] += charges
        daily_pnl[calendar_day_key(trade.date)] += net

    stats.net_pnl = stats.gross_pnl - stats.total_charges - stats.total_interest
    if stats.realized_count:
        stats.win_rate = winning / stats.realized_count * 100
    stats.avg_win = _mean(wins)
    stats.avg_loss = _mean(losses)
    stats.largest_win = max(wins) if wins else ZERO
    stats.largest_loss = min(losses) if losses else ZERO
    total_losses = -sum(losses, ZERO)
    stats.profit_factor = float(sum(wins, ZERO) / total_losses) if total_losses else 0.0
    stats.category_pnl = dict(category_pnl)
    stats.category_charges = dict(category_charges)
    stats.daily_pnl = dict(daily_pnl)
    return stats


def compute_roi(net_pnl: Decimal, capital: Optional[Decimal]) -> float:
    """Net P&L as a percentage of capital; 0 when no capital is set."""
    if capital is None or capital <= 0:
        return 0.0
    return float(net_pnl / capital * 100)


def group_by_category(trades: Iterable[Trade]) -> Dict[TradeCategory, List[Trade]]:
    groups: Dict[TradeCategory, List[Trade]] = defaultdict(list)
    for trade in trades:
        groups[trade.category].append(trade)
    return dict(groups)


@dataclass
class AnalyticsSnapshot:
    """Everything the dashboard and reports views read.

    ``fy_*`` fields cover the selected financial year only; the
    unprefixed fields additionally respect the selected month.
    """

    fy_stats: PeriodStats
    fy_roi: float
    stats: PeriodStats
    roi: float
    total_trades: int = 0
    open_trades_count: int = 0
    recent_trades: List[Trade] = field(default_factory=list)
    trades_by_category: Dict[TradeCategory, List[Trade]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "AnalyticsSnapshot":
        return cls(fy_stats=PeriodStats(), fy_roi=0.0, stats=PeriodStats(), roi=0.0)


def compute_snapshot(
    trades: List[Trade],
    financial_year: Optional[int] = None,
    month: Optional[int] = None,
    capital: Optional[Decimal] = None,
    as_of: Optional[datetime] = None,
) -> AnalyticsSnapshot:
    """Run the two-scope pipeline: FY filter, then month filter, then rollups."""
    base = filter_by_period(trades, fy=financial_year)
    dashboard = filter_by_period(base, month=month)

    fy_stats = compute_stats(base, as_of)
    stats = compute_stats(dashboard, as_of)
    return AnalyticsSnapshot(
        fy_stats=fy_stats,
        fy_roi=compute_roi(fy_stats.net_pnl, capital),
        stats=stats,
        roi=compute_roi(stats.net_pnl, capital),
        total_trades=len(dashboard),
        open_trades_count=sum(1 for t in dashboard if t.status != TradeStatus.CLOSED),
        recent_trades=dashboard[:RECENT_TRADES_LIMIT],
        trades_by_category=group_by_category(dashboard),
    )


def summarize_closed(trades: Iterable[Trade]) -> Dict[str, Any]:
    """Lifetime summary over closed-or-exited trades.

    Win/loss uses the net P&L when available. Interest is not deducted
    here; this is the quick headline figure, not the period rollup.
    """
    closed = [t for t in trades if t.status == TradeStatus.CLOSED or t.exit_price is not None]
    winning = [t for t in closed if (t.pnl or ZERO) > 0]
    gross = sum((t.gross_pnl or ZERO for t in closed), ZERO)
    charges = sum((t.charges or ZERO for t in closed), ZERO)
    return {
        "win_rate": len(winning) / len(closed) * 100 if closed else 0.0,
        "gross_pnl": gross,
        "net_pnl": gross - charges,
        "charges": charges,
        "total_trades": len(closed),
    }
