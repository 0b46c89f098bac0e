"""Shared test fixtures for the trade journal tests."""

import asyncio
import json
from datetime import datetime
from types import SimpleNamespace

import pytest

from tradejournal.config import Settings
from tradejournal.models.trade import Trade


def make_trade(
    id="t1",
    user_id="user-1",
    symbol="AAPL",
    trade_type="long",
    entry_price=100.0,
    exit_price=110.0,
    stop_loss=98.0,
    target_price=106.0,
    quantity=10.0,
    position_size=1000.0,
    pnl=100.0,
    pnl_percentage=10.0,
    status="win",
    entry_time=datetime(2024, 1, 17, 10, 0),  # Wednesday morning
    exit_time=datetime(2024, 1, 17, 11, 0),
    reason="Breakout above resistance on volume",
    emotions=None,
    tags=None,
    **kwargs,
) -> Trade:
    return Trade(
        id=id,
        user_id=user_id,
        symbol=symbol,
        trade_type=trade_type,
        entry_price=entry_price,
        exit_price=exit_price,
        stop_loss=stop_loss,
        target_price=target_price,
        quantity=quantity,
        position_size=position_size,
        pnl=pnl,
        pnl_percentage=pnl_percentage,
        status=status,
        entry_time=entry_time,
        exit_time=exit_time,
        reason=reason,
        emotions=emotions or [],
        tags=tags or [],
        **kwargs,
    )


def make_loss(id, entry_time, exit_time=None, pnl=-50.0, **kwargs) -> Trade:
    return make_trade(
        id=id,
        entry_time=entry_time,
        exit_time=exit_time,
        exit_price=95.0,
        pnl=pnl,
        pnl_percentage=pnl / 10,
        status="loss",
        **kwargs,
    )


AI_RESPONSE = {
    "mistakes": [
        {
            "type": "TIMING",
            "description": "Entered before confirmation candle closed",
            "severity": "medium",
            "suggestion": "Wait for the candle close",
        }
    ],
    "strengths": [
        {
            "aspect": "Stop placement",
            "description": "Stop below structure",
            "recommendation": "Keep using structural stops",
        }
    ],
    "emotional_analysis": {
        "detected_emotions": ["confidence"],
        "emotional_score": 8,
        "impact_on_trade": "Calm execution",
        "suggestions": ["Keep a pre-trade checklist"],
    },
    "risk_analysis": {
        "risk_reward_ratio": 3.0,
        "position_sizing": "appropriate",
        "stop_loss_quality": "good",
        "recommendations": [],
    },
    "overall_rating": 7,
    "summary": "Well planned breakout trade.",
}


class FakeMessages:
    """Stands in for anthropic's `client.messages`."""

    def __init__(self, text: str | None = None, exc: Exception | None = None, delay: float = 0):
        self.text = text
        self.exc = exc
        self.delay = delay
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc:
            raise self.exc
        return SimpleNamespace(
            content=[SimpleNamespace(text=self.text)],
            usage=SimpleNamespace(input_tokens=120, output_tokens=340),
        )


class FakeClient:
    def __init__(self, **kwargs):
        self.messages = FakeMessages(**kwargs)


def ai_client(payload: dict | None = None, prefix: str = "", suffix: str = "", **kwargs) -> FakeClient:
    text = prefix + json.dumps(payload if payload is not None else AI_RESPONSE) + suffix
    return FakeClient(text=text, **kwargs)


@pytest.fixture
def config():
    return Settings(anthropic_api_key="", ai_timeout_seconds=0.5, _env_file=None)


@pytest.fixture
def trade():
    return make_trade()
