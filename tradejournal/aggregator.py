"""Analysis Aggregator — merges rule findings and AI review into one record."""

import uuid
import warnings
from datetime import datetime, timezone

from loguru import logger

from tradejournal.db.database import Database
from tradejournal.errors import PersistenceWarning
from tradejournal.models.analysis import Analysis, ExternalAnalysis, MistakeFinding
from tradejournal.rules.base import mistake_score


class AnalysisAggregator:
    def __init__(self, db: Database):
        self.db = db

    def aggregate(
        self,
        trade_id: str,
        owner_id: str,
        rule_findings: list[MistakeFinding],
        external_analysis: ExternalAnalysis,
    ) -> Analysis:
        """Assemble the Analysis record. Pure apart from the id and timestamp."""
        return Analysis(
            id=uuid.uuid4().hex,
            trade_id=trade_id,
            user_id=owner_id,
            ai_analysis=external_analysis,
            mistakes_detected=[f.id for f in rule_findings],
            rule_findings=list(rule_findings),
            patterns_identified=[],
            confidence_score=external_analysis.overall_rating or 0,
            total_mistakes_found=len(rule_findings) + len(external_analysis.mistakes),
            mistake_score=mistake_score(rule_findings),
            created_at=datetime.now(timezone.utc),
        )

    async def save(self, analysis: Analysis) -> bool:
        """Best-effort write. A failed write is logged, never raised."""
        try:
            await self.db.insert_analysis(analysis)
        except Exception as e:
            message = f"Could not save analysis {analysis.id} for trade {analysis.trade_id}: {e}"
            warnings.warn(message, PersistenceWarning, stacklevel=2)
            logger.warning(message)
            return False

        logger.info(
            f"Analysis {analysis.id} saved for trade {analysis.trade_id} "
            f"({analysis.total_mistakes_found} mistakes)"
        )
        return True
