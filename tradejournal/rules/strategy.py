"""Trade planning rules."""

from tradejournal.models.analysis import MistakeFinding
from tradejournal.models.trade import Trade
from tradejournal.rules.base import MistakeRule, register_rule


@register_rule
class NoTradeReasonRule(MistakeRule):
    rule_id = "NO_TRADE_REASON"
    category = "STRATEGY"
    severity = "medium"
    title = "No Trade Reason Documented"

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        reason = (trade.reason or "").strip()
        if reason and reason not in self.thresholds.placeholder_reasons:
            return None
        return self.finding(
            trade,
            "Trade was entered without documenting the reason/setup.",
            "Always document why you took the trade. This helps you analyze patterns later.",
        )


@register_rule
class CounterTrendRule(MistakeRule):
    rule_id = "COUNTER_TREND"
    category = "STRATEGY"
    severity = "medium"
    title = "Counter-Trend Trade"
    confidence = 70

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        if "counter-trend" not in {t.strip().lower() for t in trade.tags}:
            return None
        return self.finding(
            trade,
            "Trading against the trend is riskier and has lower win rate.",
            'Focus on trend-following trades. "The trend is your friend."',
        )


@register_rule
class NoTargetRule(MistakeRule):
    rule_id = "NO_TARGET"
    category = "STRATEGY"
    severity = "medium"
    title = "No Target Price Set"
    confidence = 85

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        if trade.target_price:
            return None
        return self.finding(
            trade,
            "Trade entered without a clear profit target.",
            "Always have a profit target before entering. Know when to exit with gains.",
        )
