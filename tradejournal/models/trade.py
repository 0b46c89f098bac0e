from pydantic import BaseModel
from datetime import datetime
from typing import Literal

TradeType = Literal["long", "short"]
TradeStatus = Literal["open", "win", "loss", "breakeven"]


class Trade(BaseModel):
    id: str
    user_id: str
    symbol: str
    asset_type: str = "stock"
    trade_type: TradeType
    entry_price: float
    exit_price: float | None = None
    stop_loss: float | None = None
    target_price: float | None = None
    quantity: float
    position_size: float
    pnl: float | None = None
    pnl_percentage: float | None = None
    status: TradeStatus = "open"
    entry_time: datetime
    exit_time: datetime | None = None
    timeframe: str | None = None
    setup_type: str | None = None
    reason: str | None = None
    emotions: list[str] = []
    tags: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_closed(self) -> bool:
        return self.status != "open"


class TradeInput(BaseModel):
    """Fields accepted when creating or updating a trade.

    Prices and sizes are left loosely typed so the PnL calculator can reject
    bad values with a domain error instead of a schema error.
    """
    symbol: str
    asset_type: str = "stock"
    trade_type: str = "long"
    entry_price: float | str
    exit_price: float | str | None = None
    stop_loss: float | str | None = None
    target_price: float | str | None = None
    quantity: float | str
    position_size: float | str | None = None  # defaults to entry_price * quantity
    entry_time: datetime | None = None
    exit_time: datetime | None = None
    timeframe: str | None = None
    setup_type: str | None = None
    reason: str | None = None
    emotions: list[str] = []
    tags: list[str] = []


class PnlResult(BaseModel):
    pnl: float | None = None
    pnl_percentage: float | None = None
    status: TradeStatus = "open"
