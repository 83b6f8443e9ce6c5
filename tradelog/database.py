"""
database.py
-----------

This module encapsulates all interactions with the SQLite database used
to persist journal entries and the user's capital. Keeping database
logic here makes it easy to change the storage backend later without
affecting the analytics or the web layer.

Money columns are stored as TEXT so Decimal values round-trip exactly.
Every sqlite3 failure is re-raised as PersistenceError.
"""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Iterator, List, Optional

from .errors import PersistenceError
from .fiscal import to_local
from .models import Trade, TradeCategory, TradeStatus, TradeType, UserProfile

logger = logging.getLogger(__name__)


def _dec_out(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _dec_in(value: Optional[str]) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


def _dt_out(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else to_local(value).isoformat()


def _dt_in(value: Optional[str]) -> Optional[datetime]:
    return None if value is None else datetime.fromisoformat(value)


class TradeJournalDB:
    """SQLite-backed repository for trades + user capital."""

    def __init__(self, db_path: str = "tradelog.db") -> None:
        self.db_path = db_path
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise PersistenceError("connect", str(e)) from e
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    @contextmanager
    def _guard(self, operation: str, trade_id: Optional[str] = None) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            logger.error("SQLite failure during %s: %s", operation, e)
            raise PersistenceError(operation, str(e), trade_id) from e

    # ---------- schema ----------
    def _create_tables(self) -> None:
        """Create required tables (trades, users) and indexes."""
        with self._guard("create_tables"), self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    type TEXT NOT NULL CHECK (type IN ('Buy','Sell')),
                    category TEXT NOT NULL,
                    entry_price TEXT NOT NULL,
                    target_price TEXT NOT NULL,
                    stop_loss TEXT NOT NULL,
                    quantity INTEGER,
                    timeframe TEXT,
                    notes TEXT,
                    tags TEXT NOT NULL DEFAULT '[]',
                    date TEXT NOT NULL,  -- ISO8601, local time
                    exit_price TEXT,
                    exit_date TEXT,
                    charges TEXT,
                    interest_per_day TEXT,
                    status TEXT NOT NULL,
                    image_paths TEXT NOT NULL DEFAULT '[]'
                )
                """
            )
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_trades_user_date ON trades(user_id, date)"
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT,
                    fullname TEXT,
                    capital TEXT
                )
                """
            )

    # ---------- trades ----------
    def _params(self, trade: Trade) -> tuple:
        return (
            trade.user_id,
            trade.symbol.strip().upper(),
            trade.type.value,
            trade.category.value,
            str(trade.entry_price),
            str(trade.target_price),
            str(trade.stop_loss),
            trade.quantity,
            trade.timeframe,
            trade.notes,
            json.dumps(list(trade.tags)),
            _dt_out(trade.date),
            _dec_out(trade.exit_price),
            _dt_out(trade.exit_date),
            _dec_out(trade.charges),
            _dec_out(trade.interest_per_day),
            trade.status.value,
            json.dumps(list(trade.image_paths)),
        )

    def add_trade(self, trade: Trade, owner_id: str) -> str:
        """Insert a new trade for ``owner_id`` and return its freshly minted id."""
        trade_id = str(uuid.uuid4())
        trade = replace(trade, user_id=owner_id)
        with self._guard("add_trade", trade_id), self.conn:
            self.conn.execute(
                """
                INSERT INTO trades
                    (user_id, symbol, type, category, entry_price, target_price,
                     stop_loss, quantity, timeframe, notes, tags, date, exit_price,
                     exit_date, charges, interest_per_day, status, image_paths, id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                self._params(trade) + (trade_id,),
            )
        return trade_id

    def update_trade(self, trade: Trade) -> None:
        """Overwrite an existing trade in place."""
        if not trade.id:
            raise PersistenceError("update_trade", "trade has no id")
        with self._guard("update_trade", trade.id), self.conn:
            cur = self.conn.execute(
                """
                UPDATE trades SET
                    user_id = ?, symbol = ?, type = ?, category = ?, entry_price = ?,
                    target_price = ?, stop_loss = ?, quantity = ?, timeframe = ?,
                    notes = ?, tags = ?, date = ?, exit_price = ?, exit_date = ?,
                    charges = ?, interest_per_day = ?, status = ?, image_paths = ?
                WHERE id = ?
                """,
                self._params(trade) + (trade.id,),
            )
        if cur.rowcount == 0:
            raise PersistenceError("update_trade", "no such trade", trade.id)

    def delete_trade(self, trade_id: str) -> None:
        with self._guard("delete_trade", trade_id), self.conn:
            cur = self.conn.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
        if cur.rowcount == 0:
            raise PersistenceError("delete_trade", "no such trade", trade_id)

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        with self._guard("get_trade", trade_id):
            row = self.conn.execute("SELECT * FROM trades WHERE id = ?", (trade_id,)).fetchone()
        return self._row_to_trade(row) if row else None

    def list_trades(self, owner_id: str) -> List[Trade]:
        """Return the owner's trades, newest first."""
        with self._guard("list_trades"):
            rows = self.conn.execute(
                "SELECT * FROM trades WHERE user_id = ? ORDER BY date DESC", (owner_id,)
            ).fetchall()
        return [self._row_to_trade(r) for r in rows]

    def _row_to_trade(self, row: sqlite3.Row) -> Trade:
        """Convert DB row -> Trade."""
        return Trade(
            id=row["id"],
            user_id=row["user_id"],
            symbol=row["symbol"],
            type=TradeType(row["type"]),
            category=TradeCategory(row["category"]),
            entry_price=Decimal(row["entry_price"]),
            target_price=Decimal(row["target_price"]),
            stop_loss=Decimal(row["stop_loss"]),
            quantity=row["quantity"],
            timeframe=row["timeframe"],
            notes=row["notes"] or "",
            tags=json.loads(row["tags"] or "[]"),
            date=datetime.fromisoformat(row["date"]),
            exit_price=_dec_in(row["exit_price"]),
            exit_date=_dt_in(row["exit_date"]),
            charges=_dec_in(row["charges"]),
            interest_per_day=_dec_in(row["interest_per_day"]),
            status=TradeStatus(row["status"]),
            image_paths=json.loads(row["image_paths"] or "[]"),
        )

    # ---------- users ----------
    def get_user(self, user_id: str) -> Optional[UserProfile]:
        with self._guard("get_user"):
            row = self.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return UserProfile(
            id=row["id"],
            email=row["email"],
            fullname=row["fullname"],
            capital=_dec_in(row["capital"]),
        )

    def set_capital(self, user_id: str, capital: Decimal) -> None:
        with self._guard("set_capital"), self.conn:
            self.conn.execute(
                """
                INSERT INTO users(id, capital) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET capital = excluded.capital
                """,
                (user_id, str(capital)),
            )

    # ---------- housekeeping ----------
    def close(self) -> None:
        self.conn.close()
