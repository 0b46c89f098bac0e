"""Trade analysis endpoints — run, fetch and bulk-run analyses."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tradejournal.api.auth import get_current_user
from tradejournal.errors import NotFoundError, ValidationError

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


class BulkAnalysisRequest(BaseModel):
    trade_ids: list[str] = []
    analyze_all: bool = False
    skip_existing: bool = True
    limit: int | None = None


@router.post("/bulk")
async def bulk_analyze(req: BulkAnalysisRequest, user: str = Depends(get_current_user)):
    from tradejournal.api.main import app_state
    try:
        result = await app_state["analyzer"].bulk_analyze(
            user,
            trade_ids=req.trade_ids,
            analyze_all=req.analyze_all,
            skip_existing=req.skip_existing,
            limit=req.limit,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, **result.model_dump(mode="json")}


@router.post("/{trade_id}")
async def analyze_trade(trade_id: str, user: str = Depends(get_current_user)):
    """Run rule-based and AI analysis for one trade."""
    from tradejournal.api.main import app_state
    try:
        analysis = await app_state["analyzer"].analyze_trade(trade_id, user)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Trade not found")
    return {"success": True, "analysis": analysis.model_dump(mode="json")}


@router.get("/{trade_id}")
async def get_latest_analysis(trade_id: str, user: str = Depends(get_current_user)):
    """Most recent analysis for a trade, or null if it was never analyzed."""
    from tradejournal.api.main import app_state
    analysis = await app_state["analyzer"].get_latest_analysis(trade_id, user)
    return {
        "success": True,
        "analysis": analysis.model_dump(mode="json") if analysis else None,
    }


@router.get("/{trade_id}/history")
async def list_analyses(trade_id: str, user: str = Depends(get_current_user)):
    """Every analysis of a trade, newest first."""
    from tradejournal.api.main import app_state
    analyses = await app_state["analyzer"].list_analyses(trade_id, user)
    return {
        "success": True,
        "analyses": [a.model_dump(mode="json") for a in analyses],
        "count": len(analyses),
    }
