"""
service.py
----------

The journal's single consumer: owns the in-memory snapshot of trades,
the active period selection and the derived analytics.

Refreshes fetch the whole collection first and swap it in only once it
has fully arrived; if the store fails, the previous snapshot (and the
figures derived from it) stay as they were. Changing the month or
financial year recomputes synchronously against the current snapshot.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Mapping, Optional, TextIO

from .analytics import AnalyticsSnapshot, compute_snapshot, summarize_closed
from .attachments import AttachmentStore
from .csvio import ExportRange, read_trades, select_export_range, write_trades
from .edge import EdgeStats, get_edge_stats
from .errors import PersistenceError, ValidationError
from .filters import FilterState, filter_trades
from .fiscal import available_financial_years, available_years, financial_year
from .forms import parse_trade_form
from .models import Trade, TradeCategory
from .store import TradeStore

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class JournalService:
    """Snapshot holder and coordinator between the stores and the analytics."""

    def __init__(self, store: TradeStore, attachments: AttachmentStore) -> None:
        self.store = store
        self.attachments = attachments
        self.trades: List[Trade] = []
        self.capital: Decimal = ZERO
        self.selected_month: Optional[int] = None
        self.selected_financial_year: Optional[int] = None
        self.snapshot: AnalyticsSnapshot = AnalyticsSnapshot.empty()

    # ---------- period selection ----------
    @property
    def available_financial_years(self) -> List[int]:
        return available_financial_years(self.trades)

    @property
    def available_years(self) -> List[int]:
        return available_years(self.trades)

    def recompute(self, as_of: Optional[datetime] = None) -> AnalyticsSnapshot:
        self.snapshot = compute_snapshot(
            self.trades,
            financial_year=self.selected_financial_year,
            month=self.selected_month,
            capital=self.capital,
            as_of=as_of or datetime.now(),
        )
        return self.snapshot

    def set_month(self, month: Optional[int]) -> AnalyticsSnapshot:
        """Select a calendar month (1-12) or ``None`` for the whole year."""
        if month is not None and not 1 <= month <= 12:
            raise ValueError(f"month must be 1-12, got {month}")
        self.selected_month = month
        return self.recompute()

    def set_financial_year(self, fy: Optional[int]) -> AnalyticsSnapshot:
        self.selected_financial_year = fy
        return self.recompute()

    # ---------- refresh ----------
    async def refresh(self) -> bool:
        """Reload trades and capital. Returns False if the trade fetch failed."""
        try:
            trades = await self.store.fetch_trades()
        except PersistenceError as e:
            logger.warning("Refresh failed, keeping previous snapshot: %s", e)
            return False

        try:
            capital = await self.store.fetch_capital()
        except PersistenceError as e:
            logger.warning("Could not load capital, keeping %s: %s", self.capital, e)
        else:
            self.capital = capital if capital is not None else ZERO

        self.trades = trades
        if self.selected_financial_year is None and trades:
            self.selected_financial_year = financial_year(trades[0].date)
        logger.info("Loaded %d trades", len(trades))
        self.recompute()
        return True

    # ---------- reads ----------
    def list_trades(self, state: FilterState) -> List[Trade]:
        return filter_trades(self.trades, state)

    def edge_stats(self, category: TradeCategory) -> EdgeStats:
        return get_edge_stats(category, self.snapshot.trades_by_category)

    def lifetime_summary(self) -> dict:
        return summarize_closed(self.trades)

    # ---------- capital ----------
    async def set_capital(self, amount: Decimal) -> bool:
        """Update capital in memory right away, then persist it."""
        self.capital = amount
        self.recompute()
        try:
            await self.store.set_capital(None, amount)
        except PersistenceError as e:
            logger.error("Capital %s not saved: %s", amount, e)
            return False
        logger.info("Capital set to %s", amount)
        return True

    # ---------- trade writes ----------
    async def save_trade(self, form: Mapping[str, str], editing: Optional[Trade] = None) -> bool:
        """Validate the form and add (or update ``editing``). False on any failure."""
        try:
            trade = parse_trade_form(form, editing)
        except ValidationError as e:
            logger.info("Trade not saved: %s", e)
            return False
        try:
            if editing is not None:
                await self.store.update_trade(trade)
            else:
                await self.store.add_trade(trade)
        except PersistenceError as e:
            logger.error("Trade not saved: %s", e)
            return False
        await self.refresh()
        return True

    async def delete_trade(self, trade: Trade) -> bool:
        """Delete the record, then the attachments it owned."""
        if not trade.id:
            return False
        try:
            await self.store.delete_trade(trade.id)
        except PersistenceError as e:
            logger.error("Delete failed: %s", e)
            return False
        for reference in trade.image_paths:
            self.attachments.delete(reference)
        await self.refresh()
        return True

    async def add_attachment(self, trade: Trade, data: bytes) -> Optional[str]:
        reference = self.attachments.save(data)
        trade.image_paths.append(reference)
        try:
            await self.store.update_trade(trade)
        except PersistenceError as e:
            logger.error("Attachment not linked: %s", e)
            trade.image_paths.remove(reference)
            self.attachments.delete(reference)
            return None
        return reference

    async def remove_attachment(self, trade: Trade, reference: str) -> bool:
        """Unlink ``reference`` from the trade and delete the blob behind it."""
        if reference not in trade.image_paths:
            return False
        trade.image_paths.remove(reference)
        try:
            await self.store.update_trade(trade)
        except PersistenceError as e:
            logger.error("Attachment not unlinked: %s", e)
            trade.image_paths.append(reference)
            return False
        self.attachments.delete(reference)
        return True

    # ---------- import / export ----------
    async def import_trades(self, trades: List[Trade]) -> int:
        """Add each trade independently; failures are logged and skipped."""
        imported = 0
        for trade in trades:
            try:
                await self.store.add_trade(trade)
            except PersistenceError as e:
                logger.warning("Skipping %s on import: %s", trade.symbol, e)
                continue
            imported += 1
        logger.info("Imported %d of %d trades", imported, len(trades))
        if imported:
            await self.refresh()
        return imported

    async def import_csv(self, src: TextIO) -> int:
        return await self.import_trades(read_trades(src, self.store.owner_id))

    def export_csv(
        self,
        out: TextIO,
        export_range: ExportRange = ExportRange.ALL_TIME,
        now: Optional[datetime] = None,
    ) -> int:
        return write_trades(select_export_range(self.trades, export_range, now), out)
