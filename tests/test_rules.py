"""Tests for tradejournal.rules — mistake detection."""

from datetime import datetime, timedelta, timezone

import pytest

from tradejournal.config import RuleThresholds
from tradejournal.rules.base import (
    RULE_REGISTRY,
    MistakeRule,
    group_by_category,
    group_by_severity,
    mistake_score,
)
from tradejournal.rules.engine import MistakeRuleEngine
from tests.conftest import make_loss, make_trade


@pytest.fixture
def engine():
    return MistakeRuleEngine(RuleThresholds())


def rule_ids(findings):
    return {f.rule_id for f in findings}


# ── Engine ──────────────────────────────────────────────────────────

class TestEngine:
    def test_clean_trade_has_no_findings(self, engine):
        assert engine.evaluate(make_trade(), []) == []

    def test_registry_has_all_rules(self, engine):
        assert set(engine.rule_ids) == {
            "NO_STOPLOSS", "WIDE_STOPLOSS", "POOR_RR_RATIO", "OVER_LEVERAGED",
            "WEEKEND_TRADING", "LATE_DAY_TRADING", "QUICK_EXIT",
            "REVENGE_TRADING", "OVERTRADING", "EMOTIONAL_TRADE", "LOSS_PRONE_EMOTION",
            "NO_TRADE_REASON", "COUNTER_TREND", "NO_TARGET",
        }
        assert len(RULE_REGISTRY) == len(engine.rules)

    def test_finding_ids_are_stable(self, engine):
        trade = make_trade(stop_loss=None, target_price=None)
        first = [f.id for f in engine.evaluate(trade, [])]
        second = [f.id for f in engine.evaluate(trade, [])]
        assert first == second
        assert "t1:NO_STOPLOSS" in first

    def test_each_rule_fires_at_most_once(self, engine):
        trade = make_trade(
            stop_loss=None, target_price=None, reason=None,
            emotions=["fear", "FOMO"], tags=["counter-trend"],
        )
        findings = engine.evaluate(trade, [trade])
        assert len(findings) == len(rule_ids(findings))

    def test_broken_rule_is_skipped(self):
        class BrokenRule(MistakeRule):
            rule_id = "BROKEN"
            category = "STRATEGY"
            severity = "low"
            title = "Broken"

            def evaluate(self, trade, history):
                raise ZeroDivisionError("boom")

        thresholds = RuleThresholds()
        engine = MistakeRuleEngine(
            thresholds,
            rules=[BrokenRule(thresholds), *MistakeRuleEngine(thresholds).rules],
        )
        findings = engine.evaluate(make_trade(stop_loss=None), [])
        assert rule_ids(findings) == {"NO_STOPLOSS"}

    def test_open_trade_with_empty_history(self, engine):
        trade = make_trade(exit_price=None, exit_time=None, pnl=None, pnl_percentage=None, status="open")
        assert engine.evaluate(trade, []) == []

    def test_sparse_trade_never_raises(self, engine):
        trade = make_trade(
            exit_price=None, exit_time=None, pnl=None, pnl_percentage=None,
            status="open", stop_loss=None, target_price=None, reason="",
        )
        findings = engine.evaluate(trade, [])
        assert rule_ids(findings) == {"NO_STOPLOSS", "NO_TARGET", "NO_TRADE_REASON"}


# ── Risk management ─────────────────────────────────────────────────

class TestRiskRules:
    def test_missing_stop_fires_single_risk_finding(self, engine):
        trade = make_trade(stop_loss=None, target_price=101.0)
        risk = group_by_category(engine.evaluate(trade, []))["RISK_MANAGEMENT"]
        assert len(risk) == 1
        assert risk[0].rule_id == "NO_STOPLOSS"
        assert risk[0].severity == "high"

    def test_zero_stop_counts_as_missing(self, engine):
        assert "NO_STOPLOSS" in rule_ids(engine.evaluate(make_trade(stop_loss=0), []))

    def test_poor_risk_reward(self, engine):
        # risk 2, reward 2 → 1:1
        trade = make_trade(stop_loss=98.0, target_price=102.0)
        risk = group_by_category(engine.evaluate(trade, []))["RISK_MANAGEMENT"]
        assert [f.rule_id for f in risk] == ["POOR_RR_RATIO"]
        assert risk[0].severity == "high"

    def test_risk_reward_threshold_is_configurable(self):
        engine = MistakeRuleEngine(RuleThresholds(min_risk_reward=4.0))
        # rr = 3 with default trade
        assert "POOR_RR_RATIO" in rule_ids(engine.evaluate(make_trade(), []))

    def test_wide_stop(self, engine):
        trade = make_trade(stop_loss=90.0, target_price=130.0)
        findings = engine.evaluate(trade, [])
        assert rule_ids(findings) == {"WIDE_STOPLOSS"}
        assert findings[0].severity == "medium"

    def test_over_leveraged(self, engine):
        trade = make_trade(position_size=20_000.0)
        assert rule_ids(engine.evaluate(trade, [])) == {"OVER_LEVERAGED"}

    def test_over_leverage_uses_account_equity(self):
        engine = MistakeRuleEngine(RuleThresholds(account_equity=5_000.0))
        assert "OVER_LEVERAGED" in rule_ids(engine.evaluate(make_trade(), []))


# ── Timing ──────────────────────────────────────────────────────────

class TestTimingRules:
    def test_weekend(self, engine):
        trade = make_trade(
            entry_time=datetime(2024, 1, 20, 10, 0),  # Saturday
            exit_time=datetime(2024, 1, 20, 11, 0),
        )
        findings = engine.evaluate(trade, [])
        assert rule_ids(findings) == {"WEEKEND_TRADING"}
        assert findings[0].severity == "low"

    def test_late_day(self, engine):
        trade = make_trade(
            entry_time=datetime(2024, 1, 17, 15, 10),
            exit_time=datetime(2024, 1, 17, 15, 40),
        )
        assert rule_ids(engine.evaluate(trade, [])) == {"LATE_DAY_TRADING"}

    def test_quick_losing_exit(self, engine):
        trade = make_loss(
            "t1",
            entry_time=datetime(2024, 1, 17, 10, 0),
            exit_time=datetime(2024, 1, 17, 10, 2),
        )
        assert "QUICK_EXIT" in rule_ids(engine.evaluate(trade, []))

    def test_quick_winning_exit_is_fine(self, engine):
        trade = make_trade(exit_time=datetime(2024, 1, 17, 10, 2))
        assert "QUICK_EXIT" not in rule_ids(engine.evaluate(trade, []))


# ── Psychology ──────────────────────────────────────────────────────

class TestRevengeTrading:
    def test_quick_reentry_after_loss(self, engine):
        previous = make_loss(
            "p1",
            entry_time=datetime(2024, 1, 17, 9, 0),
            exit_time=datetime(2024, 1, 17, 9, 50),
        )
        trade = make_trade()
        findings = engine.evaluate(trade, [trade, previous])
        assert "REVENGE_TRADING" in rule_ids(findings)

    def test_loss_after_loss_with_bigger_size(self, engine):
        previous = make_loss(
            "p1",
            entry_time=datetime(2024, 1, 16, 10, 0),
            exit_time=datetime(2024, 1, 16, 12, 0),
            position_size=1000.0,
        )
        trade = make_loss(
            "t1",
            entry_time=datetime(2024, 1, 17, 10, 0),
            exit_time=datetime(2024, 1, 17, 12, 0),
            position_size=3000.0,
        )
        finding = next(f for f in engine.evaluate(trade, [trade, previous]) if f.rule_id == "REVENGE_TRADING")
        assert finding.severity == "high"
        assert "larger position" in finding.description

    def test_after_win_is_fine(self, engine):
        previous = make_trade(
            id="p1",
            entry_time=datetime(2024, 1, 17, 9, 0),
            exit_time=datetime(2024, 1, 17, 9, 50),
        )
        assert "REVENGE_TRADING" not in rule_ids(engine.evaluate(make_trade(), [previous]))

    def test_long_break_same_size_is_fine(self, engine):
        previous = make_loss(
            "p1",
            entry_time=datetime(2024, 1, 16, 10, 0),
            exit_time=datetime(2024, 1, 16, 12, 0),
        )
        trade = make_loss("t1", entry_time=datetime(2024, 1, 17, 10, 0))
        assert "REVENGE_TRADING" not in rule_ids(engine.evaluate(trade, [previous]))

    def test_mixed_naive_and_aware_history(self, engine):
        older = make_loss(
            "p1",
            entry_time=datetime(2024, 1, 17, 8, 0),
            exit_time=datetime(2024, 1, 17, 8, 30),
        )
        previous = make_loss(
            "p2",
            entry_time=datetime(2024, 1, 17, 9, 0, tzinfo=timezone.utc),
            exit_time=datetime(2024, 1, 17, 9, 50, tzinfo=timezone.utc),
        )
        trade = make_trade()
        findings = engine.evaluate(trade, [trade, older, previous])
        assert "REVENGE_TRADING" in rule_ids(findings)

    def test_later_trades_are_ignored(self, engine):
        later = make_loss("p2", entry_time=datetime(2024, 1, 17, 10, 5))
        assert "REVENGE_TRADING" not in rule_ids(engine.evaluate(make_trade(), [later]))


class TestOvertrading:
    def _day_of_trades(self, n):
        start = datetime(2024, 1, 17, 9, 0)
        return [
            make_trade(id=f"h{i}", entry_time=start + timedelta(minutes=5 * i), exit_time=None)
            for i in range(n)
        ]

    def test_six_trades_in_a_day(self, engine):
        trade = make_trade()
        findings = engine.evaluate(trade, [trade, *self._day_of_trades(5)])
        finding = next(f for f in findings if f.rule_id == "OVERTRADING")
        assert "6 trades" in finding.description

    def test_five_trades_is_fine(self, engine):
        trade = make_trade()
        assert "OVERTRADING" not in rule_ids(engine.evaluate(trade, [trade, *self._day_of_trades(4)]))

    def test_previous_days_do_not_count(self, engine):
        history = [
            make_trade(id=f"h{i}", entry_time=datetime(2024, 1, 16, 9, i), exit_time=None)
            for i in range(10)
        ]
        assert "OVERTRADING" not in rule_ids(engine.evaluate(make_trade(), history))


class TestEmotionRules:
    def test_negative_emotion(self, engine):
        findings = engine.evaluate(make_trade(emotions=["FOMO", "excited"]), [])
        assert rule_ids(findings) == {"EMOTIONAL_TRADE"}

    def test_neutral_emotion(self, engine):
        assert engine.evaluate(make_trade(emotions=["calm"]), []) == []

    def _history(self, outcomes):
        history = []
        for i, outcome in enumerate(outcomes):
            entry = datetime(2024, 1, 10 + i, 10, 0)
            if outcome == "loss":
                history.append(make_loss(f"h{i}", entry_time=entry, emotions=["bored"]))
            else:
                history.append(make_trade(id=f"h{i}", entry_time=entry, emotions=["bored"]))
        return history

    def test_loss_prone_emotion(self, engine):
        trade = make_trade(emotions=["Bored"])
        findings = engine.evaluate(trade, self._history(["loss", "loss", "win", "loss"]))
        finding = next(f for f in findings if f.rule_id == "LOSS_PRONE_EMOTION")
        assert "bored (3/4 lost)" in finding.description
        assert finding.severity == "medium"

    def test_mostly_winning_emotion_is_fine(self, engine):
        trade = make_trade(emotions=["bored"])
        findings = engine.evaluate(trade, self._history(["win", "loss", "win"]))
        assert "LOSS_PRONE_EMOTION" not in rule_ids(findings)

    def test_too_few_samples(self, engine):
        trade = make_trade(emotions=["bored"])
        findings = engine.evaluate(trade, self._history(["loss", "loss"]))
        assert "LOSS_PRONE_EMOTION" not in rule_ids(findings)


# ── Strategy ────────────────────────────────────────────────────────

class TestStrategyRules:
    @pytest.mark.parametrize("reason", [None, "", "   ", "Imported from Excel"])
    def test_missing_reason(self, engine, reason):
        assert rule_ids(engine.evaluate(make_trade(reason=reason), [])) == {"NO_TRADE_REASON"}

    def test_counter_trend_tag(self, engine):
        assert rule_ids(engine.evaluate(make_trade(tags=["Counter-Trend"]), [])) == {"COUNTER_TREND"}

    def test_no_target(self, engine):
        assert rule_ids(engine.evaluate(make_trade(target_price=None), [])) == {"NO_TARGET"}


# ── Summaries ───────────────────────────────────────────────────────

class TestSummaries:
    def test_grouping_and_score(self, engine):
        trade = make_trade(
            stop_loss=None, target_price=None,
            entry_time=datetime(2024, 1, 20, 10, 0), exit_time=None,
        )
        findings = engine.evaluate(trade, [])
        # NO_STOPLOSS (high), NO_TARGET (medium), WEEKEND_TRADING (low)
        assert rule_ids(findings) == {"NO_STOPLOSS", "NO_TARGET", "WEEKEND_TRADING"}
        by_severity = group_by_severity(findings)
        assert [len(by_severity[s]) for s in ("high", "medium", "low")] == [1, 1, 1]
        by_category = group_by_category(findings)
        assert len(by_category["TIMING"]) == 1
        assert mistake_score(findings) == 17

    def test_empty_score(self):
        assert mistake_score([]) == 0
