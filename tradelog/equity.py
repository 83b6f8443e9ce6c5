# equity.py
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd

from .fiscal import month_days


def daily_pnl_series(daily_pnl: Dict[date, Decimal]) -> pd.Series:
    """Daily net P&L map -> float Series indexed by day, ascending."""
    if not daily_pnl:
        return pd.Series(dtype=float, index=pd.Index([], name="day"), name="pnl")
    s = pd.Series({d: float(v) for d, v in daily_pnl.items()}, name="pnl", dtype=float)
    s.index.name = "day"
    return s.sort_index()


def equity_curve(daily_pnl: Dict[date, Decimal], starting_equity: float = 0.0) -> pd.DataFrame:
    """
    Returns a DataFrame with columns ['day', 'pnl', 'equity'] where 'equity'
    is starting_equity plus the running sum of daily net P&L. Only days with
    realised trades appear; gaps are not filled.
    """
    s = daily_pnl_series(daily_pnl)
    out = pd.DataFrame({"day": s.index, "pnl": s.values})
    out["equity"] = out["pnl"].cumsum() + float(starting_equity)
    return out


def _tone(pnl: Optional[float]) -> str:
    if pnl is None or pnl == 0:
        return "flat"
    return "positive" if pnl > 0 else "negative"


def month_heatmap(daily_pnl: Dict[date, Decimal], year: int, month: int) -> List[Dict]:
    """
    Calendar cells for one month, Sunday-first. Padding cells have
    day=None. Each real cell carries its P&L (None when nothing was
    realised that day) and a tone for colouring.
    """
    cells = []
    for d in month_days(year, month):
        if d is None:
            cells.append({"day": None, "pnl": None, "tone": "flat"})
            continue
        v = daily_pnl.get(d)
        pnl = None if v is None else float(v)
        cells.append({"day": d, "pnl": pnl, "tone": _tone(pnl)})
    return cells


def monthly_pnl(daily_pnl: Dict[date, Decimal]) -> pd.Series:
    """Net P&L summed per calendar month, indexed by 'YYYY-MM'."""
    s = daily_pnl_series(daily_pnl)
    if s.empty:
        return pd.Series(dtype=float, name="pnl")
    idx = pd.to_datetime(pd.Series(s.index)).dt.strftime("%Y-%m")
    return s.groupby(idx.values).sum().rename("pnl")
