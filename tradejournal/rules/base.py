"""Mistake rule interface and registry.

Each rule inspects one trade plus the owner's recent history and returns at
most one MistakeFinding. Rules register themselves with @register_rule, so
adding a rule never touches the engine or the other rules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from functools import cmp_to_key

from tradejournal.config import RuleThresholds
from tradejournal.models.analysis import MistakeCategory, MistakeFinding, Severity
from tradejournal.models.trade import Trade

RULE_REGISTRY: list[type[MistakeRule]] = []

SEVERITY_WEIGHTS = {"high": 10, "medium": 5, "low": 2}


def register_rule(cls: type[MistakeRule]) -> type[MistakeRule]:
    if any(r.rule_id == cls.rule_id for r in RULE_REGISTRY):
        raise ValueError(f"Duplicate rule id: {cls.rule_id}")
    RULE_REGISTRY.append(cls)
    return cls


class MistakeRule(ABC):
    rule_id: str
    category: MistakeCategory
    severity: Severity
    title: str
    confidence: int = 100

    def __init__(self, thresholds: RuleThresholds):
        self.thresholds = thresholds

    @abstractmethod
    def evaluate(self, trade: Trade, history: list[Trade]) -> MistakeFinding | None:
        """Return a finding if the rule fires, else None."""

    def finding(self, trade: Trade, description: str, suggestion: str) -> MistakeFinding:
        return MistakeFinding(
            id=finding_id(trade.id, self.rule_id),
            rule_id=self.rule_id,
            category=self.category,
            severity=self.severity,
            title=self.title,
            description=description,
            suggestion=suggestion,
            confidence=self.confidence,
        )


def finding_id(trade_id: str, rule_id: str) -> str:
    return f"{trade_id}:{rule_id}"


# ── History helpers ─────────────────────────────────────────────────


def prior_trades(trade: Trade, history: list[Trade]) -> list[Trade]:
    """Trades entered before `trade`, newest first, excluding the trade itself."""
    earlier = [
        t for t in history
        if t.id != trade.id and _comparable(t.entry_time, trade.entry_time) < 0
    ]
    earlier.sort(key=cmp_to_key(lambda a, b: _comparable(a.entry_time, b.entry_time)), reverse=True)
    return earlier


def _comparable(a: datetime, b: datetime) -> float:
    """Signed difference a - b in seconds, tolerating naive/aware mixes."""
    if (a.tzinfo is None) != (b.tzinfo is None):
        a = a.replace(tzinfo=None)
        b = b.replace(tzinfo=None)
    return (a - b).total_seconds()


def minutes_between(start: datetime, end: datetime) -> float:
    return _comparable(end, start) / 60


# ── Finding summaries ───────────────────────────────────────────────


def group_by_category(findings: list[MistakeFinding]) -> dict[str, list[MistakeFinding]]:
    groups: dict[str, list[MistakeFinding]] = {
        "RISK_MANAGEMENT": [],
        "TIMING": [],
        "PSYCHOLOGY": [],
        "STRATEGY": [],
    }
    for f in findings:
        groups[f.category].append(f)
    return groups


def group_by_severity(findings: list[MistakeFinding]) -> dict[str, list[MistakeFinding]]:
    groups: dict[str, list[MistakeFinding]] = {"high": [], "medium": [], "low": []}
    for f in findings:
        groups[f.severity].append(f)
    return groups


def mistake_score(findings: list[MistakeFinding]) -> int:
    """Severity-weighted score: high 10, medium 5, low 2."""
    return sum(SEVERITY_WEIGHTS[f.severity] for f in findings)
