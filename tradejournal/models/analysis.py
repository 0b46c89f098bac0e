"""Analysis models: rule findings, AI output, and the persisted aggregate."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal

Severity = Literal["low", "medium", "high"]
MistakeCategory = Literal["RISK_MANAGEMENT", "TIMING", "PSYCHOLOGY", "STRATEGY"]

FALLBACK_SUMMARY = "AI analysis unavailable. Using rule-based detection only."


class MistakeFinding(BaseModel):
    """A single issue flagged by a mistake rule."""
    id: str  # "{trade_id}:{rule_id}"
    rule_id: str
    category: MistakeCategory
    severity: Severity
    title: str
    description: str
    suggestion: str
    confidence: int = 100


class AIMistake(BaseModel):
    type: str = ""
    description: str = ""
    severity: Severity = "medium"
    suggestion: str = ""


class Strength(BaseModel):
    aspect: str = ""
    description: str = ""
    recommendation: str = ""


class EmotionalAnalysis(BaseModel):
    detected_emotions: list[str] = []
    emotional_score: float = Field(default=5, ge=1, le=10)
    impact_on_trade: str = ""
    suggestions: list[str] = []


class RiskAnalysis(BaseModel):
    risk_reward_ratio: float = 0
    position_sizing: str = "unknown"  # "appropriate", "too_large", "too_small"
    stop_loss_quality: str = "unknown"  # "good", "poor", "missing"
    recommendations: list[str] = []


class ExternalAnalysis(BaseModel):
    """Qualitative trade review produced by the AI service."""
    mistakes: list[AIMistake] = []
    strengths: list[Strength] = []
    emotional_analysis: EmotionalAnalysis
    risk_analysis: RiskAnalysis
    overall_rating: float = Field(ge=1, le=10)
    summary: str
    source: Literal["ai", "fallback"] = "ai"

    @classmethod
    def fallback(cls) -> "ExternalAnalysis":
        """Neutral result used whenever the AI call fails."""
        return cls(
            mistakes=[],
            strengths=[],
            emotional_analysis=EmotionalAnalysis(
                detected_emotions=[],
                emotional_score=5,
                impact_on_trade="Unable to analyze",
                suggestions=[],
            ),
            risk_analysis=RiskAnalysis(
                risk_reward_ratio=0,
                position_sizing="unknown",
                stop_loss_quality="unknown",
                recommendations=[],
            ),
            overall_rating=5,
            summary=FALLBACK_SUMMARY,
            source="fallback",
        )


class Analysis(BaseModel):
    """One analysis run for a trade. Never updated, only superseded."""
    id: str
    trade_id: str
    user_id: str
    ai_analysis: ExternalAnalysis
    mistakes_detected: list[str] = []  # rule finding ids
    rule_findings: list[MistakeFinding] = []
    patterns_identified: list[str] = []
    confidence_score: float = 0
    total_mistakes_found: int = 0
    mistake_score: int = 0
    created_at: datetime


class BulkAnalysisItem(BaseModel):
    trade_id: str
    analysis_id: str
    total_mistakes: int
    high_severity_count: int
    ai_source: Literal["ai", "fallback"]


class BulkAnalysisResult(BaseModel):
    analyzed: int = 0
    skipped: int = 0
    results: list[BulkAnalysisItem] = []
