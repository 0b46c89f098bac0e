"""AI Service — qualitative trade review via the Claude API, with a fixed fallback."""

import asyncio
import json
from pathlib import Path
from typing import Any

import anthropic
import pydantic
from loguru import logger

from tradejournal.config import Settings
from tradejournal.errors import ExternalServiceError
from tradejournal.models.analysis import ExternalAnalysis
from tradejournal.models.trade import Trade

_PLACEHOLDER_KEYS = {"", "sk-ant-xxxxx", "your-api-key-here"}


def build_trade_prompt(trade: Trade) -> str:
    """Describe a trade for the analyst model."""

    def price(value: float | None, missing: str) -> str:
        return f"${value:g}" if value else missing

    pnl = f"${trade.pnl:.2f}" if trade.pnl is not None else "N/A"
    pnl_pct = f" ({trade.pnl_percentage:.2f}%)" if trade.pnl_percentage is not None else ""

    return (
        "Analyze this trade and respond in the JSON format described in your instructions.\n\n"
        "Trade Details:\n"
        f"- Symbol: {trade.symbol}\n"
        f"- Asset Type: {trade.asset_type}\n"
        f"- Type: {trade.trade_type.upper()}\n"
        f"- Entry Price: {price(trade.entry_price, 'N/A')}\n"
        f"- Exit Price: {price(trade.exit_price, 'Still Open')}\n"
        f"- Stop Loss: {price(trade.stop_loss, 'Not Set')}\n"
        f"- Target: {price(trade.target_price, 'Not Set')}\n"
        f"- Quantity: {trade.quantity:g}\n"
        f"- Position Size: ${trade.position_size:g}\n"
        f"- P&L: {pnl}{pnl_pct}\n"
        f"- Status: {trade.status}\n"
        f"- Entry Time: {trade.entry_time.isoformat()}\n"
        f"- Exit Time: {trade.exit_time.isoformat() if trade.exit_time else 'N/A'}\n"
        f"- Timeframe: {trade.timeframe or 'Not provided'}\n"
        f"- Setup: {trade.setup_type or 'Not provided'}\n"
        f"- Reason: {trade.reason or 'Not provided'}\n"
        f"- Emotions: {', '.join(trade.emotions) or 'None recorded'}\n"
        f"- Tags: {', '.join(trade.tags) or 'None'}"
    )


def extract_json_object(text: str) -> str:
    """Return the first balanced {...} block in `text`.

    Braces inside JSON strings are ignored, so prose or code fences around
    the object do not matter.
    """
    start = text.find("{")
    if start == -1:
        raise ValueError("No JSON object found in response")

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    raise ValueError("Unbalanced JSON object in response")


class AIService:
    def __init__(self, config: Settings, client: Any = None):
        self.config = config
        self._api_key = config.anthropic_api_key
        self._client = client

        if self._client is None and self.api_key_set:
            try:
                self._client = anthropic.AsyncAnthropic(
                    api_key=self._api_key,
                    timeout=config.ai_timeout_seconds,
                    max_retries=0,
                )
                logger.info("AI Service: Using Anthropic API (key configured)")
            except Exception as e:
                logger.warning(f"AI Service: Failed to init Anthropic client: {e}")
                self._client = None

        if self._client is None:
            logger.warning("AI Service: No API key — qualitative analysis disabled, rule-based only")

        self._system_prompt = self._load_prompt("trade_analyst.md")

    # ── Properties ──────────────────────────────────────────────────

    @property
    def api_key_set(self) -> bool:
        return bool(self._api_key and self._api_key not in _PLACEHOLDER_KEYS)

    @property
    def available(self) -> bool:
        return self._client is not None

    # ── Model call ──────────────────────────────────────────────────

    async def submit(self, prompt: str) -> str:
        """Send one prompt to the model. Raises ExternalServiceError on any failure."""
        if self._client is None:
            raise ExternalServiceError("AI unavailable: no Anthropic API key configured")

        try:
            response = await asyncio.wait_for(
                self._client.messages.create(
                    model=self.config.ai_model,
                    max_tokens=self.config.ai_max_tokens,
                    system=self._system_prompt,
                    messages=[{"role": "user", "content": prompt}],
                ),
                timeout=self.config.ai_timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise ExternalServiceError(
                f"AI call timed out after {self.config.ai_timeout_seconds:g}s"
            ) from None
        except Exception as e:
            raise ExternalServiceError(f"AI call failed: {e}") from e

        try:
            text = response.content[0].text
        except (AttributeError, IndexError, TypeError) as e:
            raise ExternalServiceError(f"Unexpected AI response shape: {e}") from e

        if not text or not text.strip():
            raise ExternalServiceError("AI returned an empty response")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"AI Service: {self.config.ai_model} — "
                f"{usage.input_tokens} in / {usage.output_tokens} out"
            )
        return text

    # ── Public AI methods ───────────────────────────────────────────

    async def analyze_trade(self, trade: Trade) -> ExternalAnalysis:
        """Qualitative review of one trade. Always returns a usable result."""
        try:
            text = await self.submit(build_trade_prompt(trade))
            return self.parse_analysis(text)
        except ExternalServiceError as e:
            logger.warning(f"AI analysis for trade {trade.id} unavailable: {e}")
        except Exception as e:
            logger.error(f"AI analysis for trade {trade.id} failed unexpectedly: {e}")
        return ExternalAnalysis.fallback()

    def parse_analysis(self, text: str) -> ExternalAnalysis:
        """Decode and validate the model's JSON. Raises ExternalServiceError."""
        try:
            data = json.loads(extract_json_object(text))
        except ValueError as e:  # includes json.JSONDecodeError
            raise ExternalServiceError(f"Malformed AI response: {e}") from e

        if not isinstance(data, dict):
            raise ExternalServiceError("AI response is not a JSON object")

        # Normalize AI output — the model sometimes sends null for empty lists
        for key in ("mistakes", "strengths"):
            if data.get(key) is None:
                data[key] = []
        data["source"] = "ai"

        try:
            return ExternalAnalysis.model_validate(data)
        except pydantic.ValidationError as e:
            raise ExternalServiceError(f"AI response failed schema validation: {e}") from e

    # ── Helpers ─────────────────────────────────────────────────────

    def _load_prompt(self, filename: str) -> str:
        prompt_path = Path(__file__).parent / "prompts" / filename
        if prompt_path.exists():
            return prompt_path.read_text()
        return "You are an expert trading analyst. Reply with JSON only."
