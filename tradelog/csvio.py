"""
csvio.py
--------

CSV export and import of journal entries.

The column layout is fixed and shared by both directions. Export flattens
commas, double quotes and newlines inside free-text fields to spaces and
never quotes, so every exported line splits cleanly on commas. Missing
charges are written as ``0.00`` and so come back as ``Decimal("0.00")``
rather than ``None``. Import re-derives everything it can: ids are minted
fresh and the two P&L columns are ignored because they are recomputed
from the trade itself.

Rows that cannot be parsed are skipped; a batch with a few bad lines
still imports the rest.
"""

import csv
import logging
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Sequence, TextIO

from .errors import ParseError
from .fiscal import financial_year, fy_bounds, to_local
from .models import (
    Trade,
    TradeCategory,
    TradeStatus,
    TradeType,
    parse_decimal,
    parse_int,
)

logger = logging.getLogger(__name__)

HEADER = [
    "Date", "Symbol", "Type", "Category", "Quantity", "Entry Price",
    "Exit Price", "Charges", "Gross P&L", "Net P&L", "Status", "Notes",
]
DATE_FORMAT = "%Y-%m-%d %H:%M"
MIN_COLUMNS = 11


def _money(value) -> str:
    return "" if value is None else f"{value:.2f}"


def _flatten(text: str) -> str:
    for ch in (",", "\"", "\r", "\n"):
        text = text.replace(ch, " ")
    return text


# ---------- export ----------
def trade_to_row(trade: Trade) -> List[str]:
    """Flatten a trade into the fixed export columns."""
    return [
        to_local(trade.date).strftime(DATE_FORMAT),
        _flatten(trade.symbol),
        trade.type.value,
        trade.category.value,
        "" if trade.quantity is None else str(trade.quantity),
        _money(trade.entry_price),
        _money(trade.exit_price),
        _money(trade.charges) or "0.00",
        _money(trade.gross_pnl),
        _money(trade.net_pnl),
        trade.status.value,
        _flatten(trade.notes),
    ]


def write_trades(trades: Iterable[Trade], out: TextIO) -> int:
    """Write a header plus one row per trade to ``out``. Returns the row count."""
    w = csv.writer(out, lineterminator="\n", quoting=csv.QUOTE_NONE)
    w.writerow(HEADER)
    count = 0
    for t in trades:
        w.writerow(trade_to_row(t))
        count += 1
    return count


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"TradeLog_Export_{int(now.timestamp())}.csv"


class ExportRange(str, Enum):
    ALL_TIME = "All Time"
    THIS_MONTH = "This Month"
    LAST_3_MONTHS = "Last 3 Months"
    THIS_FINANCIAL_YEAR = "This Financial Year"


def _months_back(now: datetime, months: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # clamp the day for shorter months
    for day in (now.day, 30, 29, 28):
        try:
            return now.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return now - timedelta(days=30 * months)


def select_export_range(
    trades: Iterable[Trade],
    export_range: ExportRange,
    now: Optional[datetime] = None,
) -> List[Trade]:
    """Trades falling inside ``export_range`` relative to ``now``."""
    now = to_local(now or datetime.now())
    trades = list(trades)
    if export_range == ExportRange.ALL_TIME:
        return trades
    if export_range == ExportRange.THIS_MONTH:
        return [
            t for t in trades
            if (to_local(t.date).year, to_local(t.date).month) == (now.year, now.month)
        ]
    if export_range == ExportRange.LAST_3_MONTHS:
        start = _months_back(now, 3)
        return [t for t in trades if to_local(t.date) >= start]
    if export_range == ExportRange.THIS_FINANCIAL_YEAR:
        start, _ = fy_bounds(financial_year(now))
        return [t for t in trades if to_local(t.date) >= start]
    raise ValueError(f"unknown export range: {export_range!r}")


# ---------- import ----------
def row_to_trade(columns: Sequence[str], row_number: int, owner_id: str = "") -> Trade:
    """Build a trade from one CSV row. Raises ParseError on a bad required field."""
    if len(columns) < MIN_COLUMNS:
        raise ParseError(row_number, f"expected at least {MIN_COLUMNS} columns, got {len(columns)}")
    cols = [c.strip() for c in columns]
    try:
        date = datetime.strptime(cols[0], DATE_FORMAT)
        type_ = TradeType(cols[2])
        category = TradeCategory(cols[3])
        status = TradeStatus(cols[10])
        entry_price = parse_decimal(cols[5])
    except ValueError as e:
        raise ParseError(row_number, str(e)) from e
    if entry_price is None:
        raise ParseError(row_number, "entry price is required")

    # optional columns: unparseable values are dropped rather than failing the row
    def _optional(parse, raw):
        try:
            return parse(raw)
        except ValueError:
            return None

    return Trade(
        id=str(uuid.uuid4()),
        user_id=owner_id,
        symbol=cols[1],
        type=type_,
        category=category,
        entry_price=entry_price,
        quantity=_optional(parse_int, cols[4]),
        timeframe=None,
        notes=columns[11] if len(columns) > 11 else "",
        tags=[],
        date=date,
        exit_price=_optional(parse_decimal, cols[6]),
        charges=_optional(parse_decimal, cols[7]),
        status=status,
    )


def _split_line(line: str, row_number: int) -> List[str]:
    try:
        return next(csv.reader([line], quoting=csv.QUOTE_NONE))
    except csv.Error as e:
        raise ParseError(row_number, str(e)) from e


def read_trades(src: TextIO, owner_id: str = "") -> List[Trade]:
    """Parse an exported CSV stream; the first line is taken as the header.

    Each line is split on its own, so a bad line never swallows or aborts
    the lines after it.
    """
    trades: List[Trade] = []
    skipped = 0
    for row_number, line in enumerate(src):
        line = line.rstrip("\r\n")
        if row_number == 0 or not line.strip():
            continue
        try:
            trades.append(row_to_trade(_split_line(line, row_number), row_number, owner_id))
        except ParseError as e:
            skipped += 1
            logger.debug("Skipping import row: %s", e)
    logger.info("Parsed %d trades from CSV (%d rows skipped)", len(trades), skipped)
    return trades
