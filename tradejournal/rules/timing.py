"""Entry and exit timing rules."""

from tradejournal.models.analysis import MistakeFinding
from tradejournal.models.trade import Trade
from tradejournal.rules.base import MistakeRule, minutes_between, register_rule


@register_rule
class WeekendTradingRule(MistakeRule):
    rule_id = "WEEKEND_TRADING"
    category = "TIMING"
    severity = "low"
    title = "Weekend Trading"
    confidence = 70

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        # Saturday = 5, Sunday = 6
        if trade.entry_time.weekday() < 5:
            return None
        return self.finding(
            trade,
            "Trading on weekends often has lower liquidity and wider spreads.",
            "Focus on trading during weekday market hours for better execution.",
        )


@register_rule
class LateDayTradingRule(MistakeRule):
    rule_id = "LATE_DAY_TRADING"
    category = "TIMING"
    severity = "low"
    title = "Late Day Entry"
    confidence = 65

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        if trade.entry_time.hour < self.thresholds.late_entry_hour:
            return None
        return self.finding(
            trade,
            "Entering trades in the last hour of market can be risky due to volatility.",
            "Avoid entering new positions late in the session. Let existing positions run.",
        )


@register_rule
class QuickExitRule(MistakeRule):
    rule_id = "QUICK_EXIT"
    category = "PSYCHOLOGY"
    severity = "medium"
    title = "Premature Exit"
    confidence = 75

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        if not trade.exit_time or trade.pnl is None or trade.pnl >= 0:
            return None

        held = minutes_between(trade.entry_time, trade.exit_time)
        if held < 0 or held >= self.thresholds.quick_exit_minutes:
            return None

        return self.finding(
            trade,
            f"Trade was closed in {held:.0f} minutes with a loss. Possible panic exit.",
            "Give your trades time to work. Don't exit on small fluctuations unless stop loss is hit.",
        )
