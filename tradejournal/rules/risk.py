"""Risk management rules."""

from tradejournal.models.analysis import MistakeFinding
from tradejournal.models.trade import Trade
from tradejournal.rules.base import MistakeRule, register_rule


@register_rule
class NoStopLossRule(MistakeRule):
    rule_id = "NO_STOPLOSS"
    category = "RISK_MANAGEMENT"
    severity = "high"
    title = "No Stop Loss Set"

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        if trade.stop_loss:
            return None
        return self.finding(
            trade,
            f"Trade {trade.symbol} was entered without a stop loss, exposing you to unlimited risk.",
            "Always set a stop loss before entering a trade. Use 1-2% of your capital as maximum risk per trade.",
        )


@register_rule
class WideStopLossRule(MistakeRule):
    rule_id = "WIDE_STOPLOSS"
    category = "RISK_MANAGEMENT"
    severity = "medium"
    title = "Stop Loss Too Wide"
    confidence = 90

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        if not trade.stop_loss or trade.entry_price <= 0:
            return None

        distance_pct = abs((trade.entry_price - trade.stop_loss) / trade.entry_price) * 100
        if distance_pct <= self.thresholds.max_stop_distance_pct:
            return None

        return self.finding(
            trade,
            f"Your stop loss is {distance_pct:.1f}% away from entry, which is too wide and increases risk.",
            "Keep stop loss within 2-3% of entry price for better risk management.",
        )


@register_rule
class PoorRiskRewardRule(MistakeRule):
    rule_id = "POOR_RR_RATIO"
    category = "RISK_MANAGEMENT"
    severity = "high"
    title = "Poor Risk:Reward Ratio"
    confidence = 95

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        if not trade.stop_loss or not trade.target_price:
            return None

        risk = abs(trade.entry_price - trade.stop_loss)
        if risk == 0:
            return None
        reward = abs(trade.target_price - trade.entry_price)
        rr_ratio = reward / risk

        if rr_ratio >= self.thresholds.min_risk_reward:
            return None

        return self.finding(
            trade,
            f"Risk:Reward ratio of 1:{rr_ratio:.2f} is below the 1:{self.thresholds.min_risk_reward:g} minimum.",
            "Aim for minimum 1:2 risk:reward ratio. Only take trades where potential profit is at least 2x the risk.",
        )


@register_rule
class OverLeveragedRule(MistakeRule):
    rule_id = "OVER_LEVERAGED"
    category = "RISK_MANAGEMENT"
    severity = "high"
    title = "Position Size Too Large"
    confidence = 85

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        equity = self.thresholds.account_equity
        if equity <= 0:
            return None

        position_pct = (trade.position_size / equity) * 100
        if position_pct <= self.thresholds.max_position_pct:
            return None

        return self.finding(
            trade,
            f"Position size is {position_pct:.1f}% of account, which is over-leveraged.",
            "Keep position size to 2-5% of total account value to avoid catastrophic losses.",
        )
