"""
Tests for per-category edge statistics.
"""

import pytest
from decimal import Decimal
from datetime import datetime

from tradelog.analytics import group_by_category
from tradelog.edge import EDGE_CATEGORIES, get_edge_stats
from tradelog.models import Trade, TradeCategory, TradeStatus

from conftest import AS_OF, DAY0


class TestEdgeStats:
    def test_mtf_interest_includes_open_positions(self, mtf_trade):
        """Open MTF positions accrue interest but stay out of the win rate."""
        open_mtf = Trade(
            symbol='SBIN',
            category=TradeCategory.MTF,
            entry_price=Decimal('600'),
            quantity=10,
            interest_per_day=Decimal('1'),
            status=TradeStatus.EXECUTED,
            date=DAY0,
        )
        groups = group_by_category([mtf_trade, open_mtf])
        edge = get_edge_stats(TradeCategory.MTF, groups, as_of=AS_OF)
        assert edge.total_trades == 2
        assert edge.win_rate == pytest.approx(100.0)
        assert edge.avg_win == Decimal('100')
        assert edge.avg_loss == Decimal('0')
        # 10 on the closed trade, 21 days x 1 on the open one
        assert edge.total_interest == Decimal('31')

    def test_win_rate_uses_gross(self):
        """A trade that is green before costs counts as a win even if net is red."""
        t = Trade(
            category=TradeCategory.INTRADAY,
            entry_price=Decimal('100'),
            exit_price=Decimal('101'),
            quantity=1,
            charges=Decimal('5'),
            status=TradeStatus.CLOSED,
        )
        assert t.net_pnl < 0
        edge = get_edge_stats(TradeCategory.INTRADAY, {TradeCategory.INTRADAY: [t]})
        assert edge.win_rate == pytest.approx(100.0)

    def test_closed_without_exit_counts_in_denominator(self):
        """Closed status without an exit price is considered, but can't win."""
        closed_no_exit = Trade(category=TradeCategory.FNO, entry_price=Decimal('10'),
                               status=TradeStatus.CLOSED, date=datetime(2024, 6, 1))
        winner = Trade(category=TradeCategory.FNO, entry_price=Decimal('10'),
                       exit_price=Decimal('12'), status=TradeStatus.EXECUTED,
                       date=datetime(2024, 6, 2))
        edge = get_edge_stats(TradeCategory.FNO, {TradeCategory.FNO: [closed_no_exit, winner]})
        assert edge.win_rate == pytest.approx(50.0)
        assert edge.avg_win == Decimal('2')

    def test_loss_average(self, fno_loss):
        edge = get_edge_stats(TradeCategory.FNO, group_by_category([fno_loss]))
        assert edge.avg_loss == Decimal('-500')
        assert edge.win_rate == 0.0

    def test_missing_category(self, sample_trades):
        edge = get_edge_stats(TradeCategory.IPO, group_by_category(sample_trades))
        assert edge.total_trades == 0
        assert edge.win_rate == 0.0
        assert edge.to_dict() == {
            'win_rate': 0.0, 'total_trades': 0, 'avg_win': 0.0,
            'avg_loss': 0.0, 'total_interest': 0.0,
        }

    def test_edge_categories(self):
        assert EDGE_CATEGORIES == (TradeCategory.INTRADAY, TradeCategory.FNO, TradeCategory.MTF)
