"""Mistake Rule Engine — runs every registered rule against one trade."""

from loguru import logger

from tradejournal.config import RuleThresholds
from tradejournal.models.analysis import MistakeFinding
from tradejournal.models.trade import Trade
from tradejournal.rules.base import RULE_REGISTRY, MistakeRule

# Imported for their @register_rule side effect
from tradejournal.rules import risk, timing, psychology, strategy  # noqa: F401


class MistakeRuleEngine:
    """Evaluates a trade against a fixed pipeline of independent rules."""

    def __init__(
        self,
        thresholds: RuleThresholds | None = None,
        rules: list[MistakeRule] | None = None,
    ):
        self.thresholds = thresholds or RuleThresholds()
        if rules is None:
            rules = [rule_cls(self.thresholds) for rule_cls in RULE_REGISTRY]
        self.rules = rules

    @property
    def rule_ids(self) -> list[str]:
        return [r.rule_id for r in self.rules]

    def evaluate(self, trade: Trade, history: list[Trade]) -> list[MistakeFinding]:
        """Return every finding for `trade`. Never raises."""
        findings: list[MistakeFinding] = []
        seen: set[str] = set()

        for rule in self.rules:
            try:
                finding = rule.evaluate(trade, history)
            except Exception as e:
                logger.warning(f"Rule {rule.rule_id} failed on trade {trade.id}: {e}")
                continue
            if finding is None or finding.rule_id in seen:
                continue
            seen.add(finding.rule_id)
            findings.append(finding)

        logger.debug(
            f"Rule engine: trade {trade.id} — {len(findings)} finding(s) "
            f"from {len(self.rules)} rules, {len(history)} trades of history"
        )
        return findings
