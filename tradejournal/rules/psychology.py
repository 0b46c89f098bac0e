"""Behavioral rules: revenge trading, overtrading, emotional decisions."""

from tradejournal.models.analysis import MistakeFinding
from tradejournal.models.trade import Trade
from tradejournal.rules.base import MistakeRule, minutes_between, prior_trades, register_rule


def _normalized(tags: list[str]) -> set[str]:
    return {t.strip().lower() for t in tags if t and t.strip()}


@register_rule
class RevengeTradingRule(MistakeRule):
    rule_id = "REVENGE_TRADING"
    category = "PSYCHOLOGY"
    severity = "high"
    title = "Possible Revenge Trading"
    confidence = 80

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        previous = prior_trades(trade, history)
        if not previous:
            return None

        last = previous[0]
        if last.pnl is None or last.pnl >= 0:
            return None

        last_time = last.exit_time or last.entry_time
        gap = minutes_between(last_time, trade.entry_time)
        quick_reentry = 0 <= gap < self.thresholds.revenge_window_minutes

        sized_up_loss = (
            trade.pnl is not None
            and trade.pnl < 0
            and trade.position_size > last.position_size
        )

        if quick_reentry:
            description = (
                f"This trade was taken {gap:.0f} minutes after a loss on {last.symbol}. "
                "Be careful of emotional decisions."
            )
        elif sized_up_loss:
            description = (
                f"This loss followed a loss on {last.symbol} with a larger position "
                f"({trade.position_size:g} vs {last.position_size:g}). Classic attempt to win it back."
            )
        else:
            return None

        return self.finding(
            trade,
            description,
            "Take a 30-minute break after a losing trade and never increase size to recover a loss.",
        )


@register_rule
class OvertradingRule(MistakeRule):
    rule_id = "OVERTRADING"
    category = "PSYCHOLOGY"
    severity = "medium"
    title = "Overtrading Detected"
    confidence = 85

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        day = trade.entry_time.date()
        same_day = [
            t for t in prior_trades(trade, history)
            if t.entry_time.date() == day
        ]
        count = len(same_day) + 1  # include this trade

        if count <= self.thresholds.max_trades_per_day:
            return None

        return self.finding(
            trade,
            f"You've taken {count} trades on {day.isoformat()}. Quality over quantity.",
            "Limit yourself to 2-3 high-quality setups per day. Overtrading leads to mistakes.",
        )


@register_rule
class EmotionalTradeRule(MistakeRule):
    rule_id = "EMOTIONAL_TRADE"
    category = "PSYCHOLOGY"
    severity = "high"
    title = "Emotional Trading Detected"
    confidence = 90

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        negative = _normalized(self.thresholds.negative_emotions)
        if not (_normalized(trade.emotions) & negative):
            return None

        return self.finding(
            trade,
            f"Emotions detected: {', '.join(trade.emotions)}. Trading with emotions clouds judgment.",
            "Only trade when you are calm and following your plan. Take breaks when emotional.",
        )


@register_rule
class LossProneEmotionRule(MistakeRule):
    """Flags emotions that have historically gone together with losing trades."""

    rule_id = "LOSS_PRONE_EMOTION"
    category = "PSYCHOLOGY"
    severity = "medium"
    title = "Recurring Loss-Prone Emotion"
    confidence = 75

    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        emotions = _normalized(trade.emotions)
        if not emotions:
            return None

        closed = [t for t in prior_trades(trade, history) if t.is_closed]
        if not closed:
            return None

        flagged: list[str] = []
        for emotion in sorted(emotions):
            tagged = [t for t in closed if emotion in _normalized(t.emotions)]
            if len(tagged) < self.thresholds.emotion_min_samples:
                continue
            losses = sum(1 for t in tagged if t.status == "loss")
            loss_rate = losses / len(tagged)
            if loss_rate >= self.thresholds.emotion_loss_rate:
                flagged.append(f"{emotion} ({losses}/{len(tagged)} lost)")

        if not flagged:
            return None

        return self.finding(
            trade,
            f"You traded while feeling {', '.join(flagged)}, which has mostly ended in losses before.",
            "When you notice these emotions, reduce size or skip the trade until you have reset.",
        )
