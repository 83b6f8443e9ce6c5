"""
forms.py
--------

Turns the add/edit trade form (a mapping of raw strings, e.g. Flask's
``request.form``) into a Trade, applying the per-category rules:

- entry price is always required;
- Intraday and F&O also require target and stop-loss;
- Delivery, IPO, Buyback, Dividend and MTF are always Buy;
- Delivery, IPO, Buyback and Dividend are saved as Closed.

Optional numeric fields that don't parse are treated as absent.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import ValidationError
from .models import (
    AUTO_CLOSED_CATEGORIES,
    BUY_ONLY_CATEGORIES,
    DIRECTIONAL_CATEGORIES,
    Trade,
    TradeCategory,
    TradeStatus,
    TradeType,
    parse_decimal,
    parse_int,
)

ZERO = Decimal("0")
FORM_DATE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


def _lenient(parse: Callable[[Any], Any], raw: Any) -> Any:
    try:
        return parse(raw)
    except ValueError:
        return None


def _parse_datetime(raw: Optional[str]) -> Optional[datetime]:
    if not raw or not raw.strip():
        return None
    s = raw.strip().replace("T", " ")
    for fmt in FORM_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognised date: {raw!r}")


def _enum(enum_cls, form: Mapping[str, str], key: str, default):
    raw = (form.get(key) or "").strip()
    if not raw:
        return default
    try:
        return enum_cls(raw)
    except ValueError as e:
        raise ValidationError(key, f"unknown value {raw!r}") from e


def parse_trade_form(form: Mapping[str, str], editing: Optional[Trade] = None) -> Trade:
    """Build a Trade from raw form values. Raises ValidationError.

    When ``editing`` is given the result keeps its id, owner, tags and
    attachments; everything else comes from the form.
    """
    symbol = (form.get("symbol") or "").strip()
    if not symbol:
        raise ValidationError("symbol", "symbol is required")

    category = _enum(TradeCategory, form, "category", TradeCategory.INTRADAY)
    type_ = _enum(TradeType, form, "type", TradeType.BUY)
    status = _enum(TradeStatus, form, "status", TradeStatus.PLANNED)

    entry_price = _lenient(parse_decimal, form.get("entry_price"))
    if entry_price is None:
        raise ValidationError("entry_price", "entry price must be a number")

    target = _lenient(parse_decimal, form.get("target_price"))
    stop = _lenient(parse_decimal, form.get("stop_loss"))
    if category in DIRECTIONAL_CATEGORIES:
        if target is None:
            raise ValidationError("target_price", f"target is required for {category.value}")
        if stop is None:
            raise ValidationError("stop_loss", f"stop-loss is required for {category.value}")

    if category in BUY_ONLY_CATEGORIES:
        type_ = TradeType.BUY
    if category in AUTO_CLOSED_CATEGORIES:
        status = TradeStatus.CLOSED

    try:
        date = _parse_datetime(form.get("date")) or (editing.date if editing else datetime.now())
        exit_date = _parse_datetime(form.get("exit_date"))
    except ValueError as e:
        raise ValidationError("date", str(e)) from e

    trade = Trade(
        symbol=symbol.upper(),
        type=type_,
        category=category,
        entry_price=entry_price,
        target_price=target if target is not None else ZERO,
        stop_loss=stop if stop is not None else ZERO,
        quantity=_lenient(parse_int, form.get("quantity")),
        timeframe=(form.get("timeframe") or "").strip() or None,
        notes=form.get("notes") or "",
        date=date,
        exit_price=_lenient(parse_decimal, form.get("exit_price")),
        exit_date=exit_date,
        charges=_lenient(parse_decimal, form.get("charges")),
        interest_per_day=_lenient(parse_decimal, form.get("interest_per_day")),
        status=status,
    )
    if editing is not None:
        trade = replace(
            trade,
            id=editing.id,
            user_id=editing.user_id,
            tags=list(editing.tags),
            image_paths=list(editing.image_paths),
        )
    return trade


def preview_pnl(form: Mapping[str, str], now: Optional[datetime] = None) -> Dict[str, Decimal]:
    """Live gross/net figures shown while the form is being filled in.

    Unlike the stored trade this needs an explicit quantity, and returns 0
    rather than None for anything it can't compute yet. MTF net subtracts
    interest projected to the exit date (closed/exited) or to ``now``.
    """
    now = now or datetime.now()
    entry = _lenient(parse_decimal, form.get("entry_price"))
    qty = _lenient(parse_decimal, form.get("quantity"))
    exit_price = _lenient(parse_decimal, form.get("exit_price"))
    charges = _lenient(parse_decimal, form.get("charges")) or ZERO
    category = _lenient(TradeCategory, (form.get("category") or "").strip()) or TradeCategory.INTRADAY
    type_ = _lenient(TradeType, (form.get("type") or "").strip()) or TradeType.BUY
    status = _lenient(TradeStatus, (form.get("status") or "").strip())

    gross = ZERO
    if entry is not None and qty is not None:
        if category == TradeCategory.DIVIDEND:
            gross = entry * qty
        elif exit_price is not None:
            gross = (exit_price - entry) * qty if type_ == TradeType.BUY else (entry - exit_price) * qty

    interest = ZERO
    rate = _lenient(parse_decimal, form.get("interest_per_day"))
    if category == TradeCategory.MTF and rate is not None:
        try:
            start = _parse_datetime(form.get("date")) or now
            exit_date = _parse_datetime(form.get("exit_date")) or now
        except ValueError:
            start, exit_date = now, now
        realised = status == TradeStatus.CLOSED or exit_price is not None
        holding = Trade(category=category, date=start, exit_date=exit_date if realised else None)
        interest = rate * holding.held_days(now)

    return {"gross_pnl": gross, "net_pnl": gross - charges - interest, "interest": interest}
