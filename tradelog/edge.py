"""
edge.py
-------

"Trading edge" comparison between categories (typically Intraday, F&O
and MTF). Accuracy figures use gross P&L so that brokerage and interest
don't mask how often the strategy itself is right.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from .models import Trade, TradeCategory, TradeStatus

ZERO = Decimal("0")

EDGE_CATEGORIES = (TradeCategory.INTRADAY, TradeCategory.FNO, TradeCategory.MTF)


@dataclass
class EdgeStats:
    win_rate: float = 0.0
    total_trades: int = 0
    avg_win: Decimal = ZERO
    avg_loss: Decimal = ZERO
    total_interest: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        for k in ("avg_win", "avg_loss", "total_interest"):
            row[k] = float(row[k])
        return row


def get_edge_stats(
    category: TradeCategory,
    trades_by_category: Mapping[TradeCategory, List[Trade]],
    as_of: Optional[datetime] = None,
) -> EdgeStats:
    """Edge metrics for one category of an already period-filtered grouping.

    Win rate and averages consider only trades that are closed or have an
    exit price. Interest sums over every trade in the category, open MTF
    positions included, and the trade count covers the whole category.
    """
    trades = trades_by_category.get(category, [])
    closed = [t for t in trades if t.status == TradeStatus.CLOSED or t.exit_price is not None]

    wins: List[Decimal] = []
    losses: List[Decimal] = []
    winning = 0
    for trade in closed:
        gross = trade.gross_pnl
        if gross is None:
            continue
        if gross > 0:
            winning += 1
        if gross >= 0:
            wins.append(gross)
        else:
            losses.append(gross)

    return EdgeStats(
        win_rate=winning / len(closed) * 100 if closed else 0.0,
        total_trades=len(trades),
        avg_win=sum(wins, ZERO) / len(wins) if wins else ZERO,
        avg_loss=sum(losses, ZERO) / len(losses) if losses else ZERO,
        total_interest=sum((t.interest_as_of(as_of) for t in trades), ZERO),
    )
