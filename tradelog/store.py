"""
store.py
--------

Async facade over the SQLite repository. The journal service awaits
these calls so a slow disk never blocks recomputation; each call runs
the blocking sqlite work in a worker thread via ``asyncio.to_thread``.

Every trade added through the store is stamped with the configured
owner, and reads only ever return that owner's trades.
"""

import asyncio
from decimal import Decimal
from typing import List, Optional

from .database import TradeJournalDB
from .models import Trade


class TradeStore:
    def __init__(self, db: TradeJournalDB, owner_id: str) -> None:
        self.db = db
        self.owner_id = owner_id

    async def fetch_trades(self, owner_id: Optional[str] = None) -> List[Trade]:
        return await asyncio.to_thread(self.db.list_trades, owner_id or self.owner_id)

    async def add_trade(self, trade: Trade) -> str:
        return await asyncio.to_thread(self.db.add_trade, trade, self.owner_id)

    async def update_trade(self, trade: Trade) -> None:
        await asyncio.to_thread(self.db.update_trade, trade)

    async def delete_trade(self, trade_id: str) -> None:
        await asyncio.to_thread(self.db.delete_trade, trade_id)

    async def get_trade(self, trade_id: str) -> Optional[Trade]:
        return await asyncio.to_thread(self.db.get_trade, trade_id)

    async def fetch_capital(self, owner_id: Optional[str] = None) -> Optional[Decimal]:
        user = await asyncio.to_thread(self.db.get_user, owner_id or self.owner_id)
        return user.capital if user else None

    async def set_capital(self, owner_id: Optional[str], capital: Decimal) -> None:
        await asyncio.to_thread(self.db.set_capital, owner_id or self.owner_id, capital)
