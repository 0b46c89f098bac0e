"""Trade CRUD endpoints. PnL is recomputed on every create and update."""

from fastapi import APIRouter, Depends, HTTPException, status

from tradejournal.api.auth import get_current_user
from tradejournal.errors import ValidationError
from tradejournal.models.trade import TradeInput
from tradejournal.pnl import apply_pnl

router = APIRouter(prefix="/api/trades", tags=["trades"])


@router.get("")
async def list_trades(
    symbol: str | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
    user: str = Depends(get_current_user),
):
    from tradejournal.api.main import app_state
    trades = await app_state["db"].list_trades(
        user, symbol=symbol, status=status, limit=limit, offset=offset
    )
    return {
        "trades": [t.model_dump(mode="json") for t in trades],
        "count": len(trades),
    }


@router.get("/{trade_id}")
async def get_trade(trade_id: str, user: str = Depends(get_current_user)):
    from tradejournal.api.main import app_state
    trade = await app_state["db"].get_trade(trade_id, user)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return {"trade": trade.model_dump(mode="json")}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_trade(req: TradeInput, user: str = Depends(get_current_user)):
    from tradejournal.api.main import app_state
    try:
        fields = apply_pnl(req)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    trade = await app_state["db"].create_trade(user, fields)
    return {"trade": trade.model_dump(mode="json")}


@router.put("/{trade_id}")
async def update_trade(trade_id: str, req: TradeInput, user: str = Depends(get_current_user)):
    from tradejournal.api.main import app_state
    try:
        fields = apply_pnl(req)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if req.entry_time is None:
        fields.pop("entry_time")  # keep the stored entry time

    trade = await app_state["db"].update_trade(trade_id, user, fields)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found or not authorized")
    return {"trade": trade.model_dump(mode="json"), "success": True}


@router.delete("/{trade_id}")
async def delete_trade(trade_id: str, user: str = Depends(get_current_user)):
    from tradejournal.api.main import app_state
    deleted = await app_state["db"].delete_trade(trade_id, user)
    if not deleted:
        raise HTTPException(status_code=404, detail="Trade not found")
    return {"success": True, "message": "Trade deleted"}
