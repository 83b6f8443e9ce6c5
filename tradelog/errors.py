"""
errors.py
---------

Exceptions raised by the journal. None of these are fatal: validation
failures become a ``False`` save result, persistence failures leave the
previous snapshot in place, and bad import rows are skipped.
"""

from dataclasses import dataclass
from typing import Optional


class TradeLogError(Exception):
    """Base class for all journal errors."""


@dataclass
class ValidationError(TradeLogError):
    field: str
    message: str

    def __str__(self) -> str:
        return f"ValidationError [{self.field}]: {self.message}"


@dataclass
class PersistenceError(TradeLogError):
    operation: str
    message: str
    trade_id: Optional[str] = None

    def __str__(self) -> str:
        target = f" (trade {self.trade_id})" if self.trade_id else ""
        return f"PersistenceError during {self.operation}{target}: {self.message}"


@dataclass
class ParseError(TradeLogError):
    row_number: int
    message: str

    def __str__(self) -> str:
        return f"ParseError on row {self.row_number}: {self.message}"
