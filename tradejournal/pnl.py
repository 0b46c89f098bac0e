"""PnL Calculator — realized profit/loss, percentage return and outcome."""

import math
from datetime import datetime
from typing import Any

from tradejournal.errors import ValidationError
from tradejournal.models.trade import PnlResult, TradeInput

_DIRECTIONS = ("long", "short")


def _to_number(name: str, value: Any, positive: bool = False) -> float:
    """Parse a numeric field, rejecting bools, junk strings and NaN/inf."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    if positive and number <= 0:
        raise ValidationError(f"{name} must be positive, got {number}")
    return number


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def compute_pnl(
    direction: str,
    entry_price: Any,
    exit_price: Any,
    quantity: Any,
    position_size: Any,
) -> PnlResult:
    """Compute realized PnL for a trade.

    An absent exit price means the position is still open, in which case
    nothing else is inspected.
    """
    if _is_blank(exit_price):
        return PnlResult(pnl=None, pnl_percentage=None, status="open")

    if direction not in _DIRECTIONS:
        raise ValidationError(f"trade_type must be 'long' or 'short', got {direction!r}")

    entry = _to_number("entry_price", entry_price, positive=True)
    exit_ = _to_number("exit_price", exit_price)
    qty = _to_number("quantity", quantity, positive=True)
    size = _to_number("position_size", position_size, positive=True)

    if direction == "long":
        pnl = (exit_ - entry) * qty
    else:
        pnl = (entry - exit_) * qty

    pnl_percentage = (pnl / size) * 100

    if pnl > 0:
        status = "win"
    elif pnl < 0:
        status = "loss"
    else:
        status = "breakeven"

    return PnlResult(pnl=pnl, pnl_percentage=pnl_percentage, status=status)


def apply_pnl(fields: TradeInput) -> dict[str, Any]:
    """Validate trade input and return storage-ready fields with PnL filled in."""
    symbol = fields.symbol.strip().upper()
    if not symbol:
        raise ValidationError("symbol is required")
    if fields.trade_type not in _DIRECTIONS:
        raise ValidationError(f"trade_type must be 'long' or 'short', got {fields.trade_type!r}")

    entry = _to_number("entry_price", fields.entry_price, positive=True)
    qty = _to_number("quantity", fields.quantity, positive=True)
    if _is_blank(fields.position_size):
        size = entry * qty
    else:
        size = _to_number("position_size", fields.position_size, positive=True)

    exit_price = None if _is_blank(fields.exit_price) else _to_number("exit_price", fields.exit_price)
    stop_loss = None if _is_blank(fields.stop_loss) else _to_number("stop_loss", fields.stop_loss)
    target = None if _is_blank(fields.target_price) else _to_number("target_price", fields.target_price)

    result = compute_pnl(fields.trade_type, entry, exit_price, qty, size)

    return {
        "symbol": symbol,
        "asset_type": fields.asset_type or "stock",
        "trade_type": fields.trade_type,
        "entry_price": entry,
        "exit_price": exit_price,
        "stop_loss": stop_loss,
        "target_price": target,
        "quantity": qty,
        "position_size": size,
        "pnl": result.pnl,
        "pnl_percentage": result.pnl_percentage,
        "status": result.status,
        "entry_time": fields.entry_time or datetime.now(),
        "exit_time": fields.exit_time,
        "timeframe": fields.timeframe,
        "setup_type": fields.setup_type,
        "reason": fields.reason,
        "emotions": list(fields.emotions),
        "tags": list(fields.tags),
    }
