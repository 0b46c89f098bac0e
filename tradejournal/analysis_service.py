"""Trade Analyzer — runs the rule engine and AI review for a trade and stores the result.

The rule engine and the AI call have no dependency on each other, so they
run concurrently; the aggregator waits for both.
"""

import asyncio

from loguru import logger

from tradejournal.aggregator import AnalysisAggregator
from tradejournal.ai_service import AIService
from tradejournal.config import Settings
from tradejournal.db.database import Database
from tradejournal.errors import NotFoundError, ValidationError
from tradejournal.models.analysis import Analysis, BulkAnalysisItem, BulkAnalysisResult
from tradejournal.models.trade import Trade
from tradejournal.rules.base import group_by_severity
from tradejournal.rules.engine import MistakeRuleEngine


class TradeAnalyzer:
    def __init__(
        self,
        db: Database,
        ai_service: AIService,
        config: Settings,
        engine: MistakeRuleEngine | None = None,
        aggregator: AnalysisAggregator | None = None,
    ):
        self.db = db
        self.ai_service = ai_service
        self.config = config
        self.engine = engine or MistakeRuleEngine(config.rules)
        self.aggregator = aggregator or AnalysisAggregator(db)

    async def analyze_trade(self, trade_id: str, owner_id: str) -> Analysis:
        """Analyze one trade. Raises NotFoundError if the owner has no such trade."""
        trade = await self.db.get_trade(trade_id, owner_id)
        if trade is None:
            raise NotFoundError(f"Trade {trade_id} not found")

        logger.info(f"Analyzing trade {trade.id} ({trade.trade_type} {trade.symbol})")
        history = await self._load_history(owner_id)
        return await self._analyze(trade, history)

    async def get_latest_analysis(self, trade_id: str, owner_id: str) -> Analysis | None:
        return await self.db.get_latest_analysis(trade_id, owner_id)

    async def list_analyses(self, trade_id: str, owner_id: str) -> list[Analysis]:
        return await self.db.list_analyses(trade_id, owner_id)

    async def bulk_analyze(
        self,
        owner_id: str,
        trade_ids: list[str] | None = None,
        analyze_all: bool = False,
        skip_existing: bool = True,
        limit: int | None = None,
    ) -> BulkAnalysisResult:
        """Analyze several trades, one after another, sharing one history read."""
        limit = limit or self.config.bulk_analysis_limit
        result = BulkAnalysisResult()

        if analyze_all:
            trades = await self.db.list_recent_trades(owner_id, limit=limit)
            if skip_existing:
                analyzed = await self.db.list_analyzed_trade_ids(owner_id)
                before = len(trades)
                trades = [t for t in trades if t.id not in analyzed]
                result.skipped += before - len(trades)
        elif trade_ids:
            trades = []
            for trade_id in trade_ids[:limit]:
                trade = await self.db.get_trade(trade_id, owner_id)
                if trade is None:
                    logger.warning(f"Bulk analysis: trade {trade_id} not found, skipping")
                    result.skipped += 1
                    continue
                trades.append(trade)
        else:
            raise ValidationError("Either trade_ids or analyze_all must be provided")

        if not trades:
            return result

        history = await self._load_history(owner_id)
        for trade in trades:
            analysis = await self._analyze(trade, history)
            by_severity = group_by_severity(analysis.rule_findings)
            result.results.append(BulkAnalysisItem(
                trade_id=trade.id,
                analysis_id=analysis.id,
                total_mistakes=analysis.total_mistakes_found,
                high_severity_count=len(by_severity["high"]),
                ai_source=analysis.ai_analysis.source,
            ))
            result.analyzed += 1

        logger.info(
            f"Bulk analysis for {owner_id}: {result.analyzed} analyzed, {result.skipped} skipped"
        )
        return result

    # ── Internals ───────────────────────────────────────────────────

    async def _analyze(self, trade: Trade, history: list[Trade]) -> Analysis:
        findings, external = await asyncio.gather(
            asyncio.to_thread(self.engine.evaluate, trade, history),
            self.ai_service.analyze_trade(trade),
        )
        logger.info(
            f"Trade {trade.id}: {len(findings)} rule finding(s), "
            f"{len(external.mistakes)} AI mistake(s), AI source={external.source}"
        )

        analysis = self.aggregator.aggregate(trade.id, trade.user_id, findings, external)
        await self.aggregator.save(analysis)
        return analysis

    async def _load_history(self, owner_id: str) -> list[Trade]:
        try:
            return await self.db.list_recent_trades(owner_id, limit=self.config.history_window)
        except Exception as e:
            logger.warning(f"History unavailable for {owner_id}, using empty history: {e}")
            return []
