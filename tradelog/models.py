"""
models.py
---------

Defines the core data model for a trade. A trade represents a single
entry in the user's trading journal: an Intraday or F&O position, a
margin-funded (MTF) holding, a delivery purchase, an IPO allotment, a
buyback tender or a dividend credit.

All categories share one record shape. The category decides how the
stored fields are read:

=========  =============================  ==========================
Category   entry_price means              type / target / stop
=========  =============================  ==========================
Intraday   entry price                    directional, target+stop
F&O        entry price                    directional, target+stop
MTF        entry price; interest accrues  forced Buy
Delivery   entry price                    forced Buy
IPO        allotment price                forced Buy
Buyback    purchase price                 forced Buy
Dividend   dividend per share             forced Buy, exit ignored
=========  =============================  ==========================

Derived values (P&L, interest, days held, risk-reward) are computed
properties and are never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional

from .fiscal import whole_days_between

ZERO = Decimal("0")


class TradeCategory(str, Enum):
    DELIVERY = "Delivery"
    INTRADAY = "Intraday"
    MTF = "MTF"
    FNO = "F&O"
    BUYBACK = "Buyback"
    IPO = "IPO"
    DIVIDEND = "Dividend"


class TradeType(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class TradeStatus(str, Enum):
    PLANNED = "Planned"
    EXECUTED = "Executed"
    CLOSED = "Closed"


# Categories whose direction is implicit; the add form hides the Buy/Sell picker.
BUY_ONLY_CATEGORIES = frozenset({
    TradeCategory.DELIVERY,
    TradeCategory.IPO,
    TradeCategory.BUYBACK,
    TradeCategory.DIVIDEND,
    TradeCategory.MTF,
})

# Categories that are complete the moment they are logged.
AUTO_CLOSED_CATEGORIES = frozenset({
    TradeCategory.DELIVERY,
    TradeCategory.BUYBACK,
    TradeCategory.IPO,
    TradeCategory.DIVIDEND,
})

# Categories where target and stop-loss are mandatory on save.
DIRECTIONAL_CATEGORIES = frozenset(set(TradeCategory) - BUY_ONLY_CATEGORIES)


# -------------------------
# small parse helpers
# -------------------------
def parse_decimal(x: Any) -> Optional[Decimal]:
    """Blank -> None, otherwise a Decimal. Raises ValueError on garbage."""
    if x is None:
        return None
    if isinstance(x, Decimal):
        return x
    s = str(x).strip()
    if not s:
        return None
    try:
        value = Decimal(s)
    except InvalidOperation as e:
        raise ValueError(f"not a number: {x!r}") from e
    if not value.is_finite():
        raise ValueError(f"not a finite number: {x!r}")
    return value


def parse_int(x: Any) -> Optional[int]:
    """Blank -> None, otherwise an int. Raises ValueError on garbage."""
    if x is None:
        return None
    if isinstance(x, int):
        return x
    s = str(x).strip()
    if not s:
        return None
    return int(s)


@dataclass
class Trade:
    """Represents a single journal entry.

    Attributes
    ----------
    id: Optional[str]
        Store-assigned identifier (None before the first save).
    user_id: str
        Owner of the record; the store stamps the configured owner on add.
    symbol: str
        Instrument name, upper-cased by the store on save.
    type: TradeType
        Buy or Sell. Forced to Buy for non-directional categories.
    category: TradeCategory
        Selects which P&L formula applies (see module docstring).
    entry_price: Decimal
        Entry price, or dividend per share for Dividend entries.
    target_price, stop_loss: Decimal
        Planned levels, only meaningful for Intraday and F&O. Default 0.
    quantity: Optional[int]
        Units traded. P&L math treats a missing quantity as 1, dividend
        math as 0.
    exit_price: Optional[Decimal]
        Present once the position is realised.
    exit_date: Optional[datetime]
        End of the holding period; "now" is used while open.
    charges: Optional[Decimal]
        Brokerage, taxes and fees. Missing counts as 0.
    interest_per_day: Optional[Decimal]
        Daily margin interest, MTF only.
    date: datetime
        Entry timestamp; partitions every time-based aggregate.
    image_paths: List[str]
        Attachment references owned by the attachment store.
    """

    id: Optional[str] = None
    user_id: str = ""
    symbol: str = ""
    type: TradeType = TradeType.BUY
    category: TradeCategory = TradeCategory.INTRADAY
    entry_price: Decimal = ZERO
    target_price: Decimal = ZERO
    stop_loss: Decimal = ZERO
    quantity: Optional[int] = None
    timeframe: Optional[str] = None
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    date: datetime = field(default_factory=datetime.now)
    exit_price: Optional[Decimal] = None
    exit_date: Optional[datetime] = None
    charges: Optional[Decimal] = None
    interest_per_day: Optional[Decimal] = None
    status: TradeStatus = TradeStatus.PLANNED
    image_paths: List[str] = field(default_factory=list)

    # ----- holding period & interest -----
    def held_days(self, as_of: Optional[datetime] = None) -> int:
        """Whole days from entry to exit (or ``as_of``/now while open), at least 1."""
        end = self.exit_date or as_of or datetime.now()
        return max(1, whole_days_between(self.date, end))

    @property
    def days_held(self) -> int:
        return self.held_days()

    def interest_as_of(self, as_of: Optional[datetime] = None) -> Decimal:
        if self.category != TradeCategory.MTF:
            return ZERO
        return (self.interest_per_day or ZERO) * self.held_days(as_of)

    @property
    def calculated_interest(self) -> Decimal:
        """Margin interest accrued so far; zero outside MTF."""
        return self.interest_as_of()

    # ----- P&L -----
    @property
    def risk_reward_ratio(self) -> Decimal:
        risk = abs(self.entry_price - self.stop_loss)
        reward = abs(self.target_price - self.entry_price)
        return ZERO if risk == 0 else reward / risk

    @property
    def gross_pnl(self) -> Optional[Decimal]:
        """P&L before costs, or None while the trade is unrealised.

        Dividend entries are always realised: dividend per share times
        quantity. Everything else needs an exit price.
        """
        if self.category == TradeCategory.DIVIDEND:
            return self.entry_price * (self.quantity or 0)
        if self.exit_price is None:
            return None
        qty = self.quantity if self.quantity is not None else 1
        if self.type == TradeType.BUY:
            return (self.exit_price - self.entry_price) * qty
        return (self.entry_price - self.exit_price) * qty

    def net_pnl_as_of(self, as_of: Optional[datetime] = None) -> Optional[Decimal]:
        gross = self.gross_pnl
        if gross is None:
            return None
        return gross - (self.charges or ZERO) - self.interest_as_of(as_of)

    @property
    def net_pnl(self) -> Optional[Decimal]:
        """Gross P&L less charges and, for MTF, accrued interest."""
        return self.net_pnl_as_of()

    @property
    def pnl(self) -> Optional[Decimal]:
        net = self.net_pnl
        return net if net is not None else self.gross_pnl

    @property
    def is_realized(self) -> bool:
        return self.gross_pnl is not None


@dataclass
class UserProfile:
    """The single logical user. Capital is only used as the ROI denominator."""

    id: str
    email: Optional[str] = None
    fullname: Optional[str] = None
    capital: Optional[Decimal] = None
