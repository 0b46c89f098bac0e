"""SQLite database layer with async support."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
from loguru import logger

from tradejournal.config import Settings
from tradejournal.models.analysis import Analysis, ExternalAnalysis, MistakeFinding
from tradejournal.models.trade import Trade

# Columns a trade update may touch. Ownership and identity are not among them.
_TRADE_FIELDS = (
    "symbol", "asset_type", "trade_type", "entry_price", "exit_price",
    "stop_loss", "target_price", "quantity", "position_size", "pnl",
    "pnl_percentage", "status", "entry_time", "exit_time", "timeframe",
    "setup_type", "reason", "emotions", "tags",
)
_JSON_FIELDS = ("emotions", "tags")
_TIME_FIELDS = ("entry_time", "exit_time")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_db(key: str, val: Any) -> tuple[str, Any]:
    """Map a model field to its column name and stored value."""
    if key in _JSON_FIELDS:
        return f"{key}_json", json.dumps(list(val or []))
    if key in _TIME_FIELDS:
        return key, val.isoformat() if hasattr(val, "isoformat") else val
    return key, val


class Database:
    def __init__(self, db_path: str | None = None, config: Settings | None = None):
        self.config = config or Settings()
        self.db_path = db_path or self.config.db_path
        self._db: aiosqlite.Connection | None = None

    async def connect(self):
        """Connect to SQLite and run migrations."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA synchronous=NORMAL")
        await self._db.execute("PRAGMA foreign_keys=ON")
        await self._db.execute(f"PRAGMA cache_size=-{self.config.db_cache_mb * 1024}")
        await self._run_migrations()
        logger.info(f"Database connected: {self.db_path}")

    async def disconnect(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database disconnected")

    async def _run_migrations(self):
        """Run all SQL migration files."""
        migrations_dir = Path(__file__).parent / "migrations"
        for sql_file in sorted(migrations_dir.glob("*.sql")):
            await self._db.executescript(sql_file.read_text())
        await self._db.commit()

    # --- Trades ---

    async def create_trade(self, owner_id: str, fields: dict[str, Any]) -> Trade:
        trade_id = uuid.uuid4().hex
        now = _now()
        columns = ["id", "user_id", "created_at", "updated_at"]
        values: list[Any] = [trade_id, owner_id, now, now]
        for key in _TRADE_FIELDS:
            if key in fields:
                column, value = _to_db(key, fields[key])
                columns.append(column)
                values.append(value)

        await self._db.execute(
            f"INSERT INTO trades ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
            values,
        )
        await self._db.commit()
        return await self.get_trade(trade_id, owner_id)

    async def get_trade(self, trade_id: str, owner_id: str) -> Trade | None:
        cursor = await self._db.execute(
            "SELECT * FROM trades WHERE id = ? AND user_id = ?", (trade_id, owner_id)
        )
        row = await cursor.fetchone()
        if not row:
            return None
        return self._row_to_trade(row)

    async def list_trades(
        self,
        owner_id: str,
        symbol: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Trade]:
        query = "SELECT * FROM trades WHERE user_id = ?"
        params: list[Any] = [owner_id]
        if symbol:
            query += " AND symbol = ?"
            params.append(symbol.upper())
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY entry_time DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        cursor = await self._db.execute(query, params)
        rows = await cursor.fetchall()
        return [self._row_to_trade(r) for r in rows]

    async def list_recent_trades(self, owner_id: str, limit: int = 50) -> list[Trade]:
        """The owner's most recent trades by entry time, newest first."""
        return await self.list_trades(owner_id, limit=limit)

    async def update_trade(
        self, trade_id: str, owner_id: str, fields: dict[str, Any]
    ) -> Trade | None:
        sets = []
        values: list[Any] = []
        for key, val in fields.items():
            if key not in _TRADE_FIELDS:
                continue
            column, value = _to_db(key, val)
            sets.append(f"{column} = ?")
            values.append(value)
        sets.append("updated_at = ?")
        values.append(_now())
        values.extend([trade_id, owner_id])

        cursor = await self._db.execute(
            f"UPDATE trades SET {', '.join(sets)} WHERE id = ? AND user_id = ?", values
        )
        await self._db.commit()
        if cursor.rowcount == 0:
            return None
        return await self.get_trade(trade_id, owner_id)

    async def delete_trade(self, trade_id: str, owner_id: str) -> bool:
        cursor = await self._db.execute(
            "DELETE FROM trades WHERE id = ? AND user_id = ?", (trade_id, owner_id)
        )
        await self._db.commit()
        return cursor.rowcount > 0

    def _row_to_trade(self, row) -> Trade:
        return Trade(
            id=row["id"],
            user_id=row["user_id"],
            symbol=row["symbol"],
            asset_type=row["asset_type"],
            trade_type=row["trade_type"],
            entry_price=row["entry_price"],
            exit_price=row["exit_price"],
            stop_loss=row["stop_loss"],
            target_price=row["target_price"],
            quantity=row["quantity"],
            position_size=row["position_size"],
            pnl=row["pnl"],
            pnl_percentage=row["pnl_percentage"],
            status=row["status"],
            entry_time=row["entry_time"],
            exit_time=row["exit_time"],
            timeframe=row["timeframe"],
            setup_type=row["setup_type"],
            reason=row["reason"],
            emotions=json.loads(row["emotions_json"] or "[]"),
            tags=json.loads(row["tags_json"] or "[]"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # --- Analyses ---

    async def insert_analysis(self, analysis: Analysis) -> str:
        await self._db.execute(
            """INSERT INTO trade_analyses
               (id, trade_id, user_id, ai_analysis_json, mistakes_detected_json,
                rule_findings_json, patterns_identified_json, confidence_score,
                total_mistakes_found, mistake_score, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                analysis.id,
                analysis.trade_id,
                analysis.user_id,
                analysis.ai_analysis.model_dump_json(),
                json.dumps(analysis.mistakes_detected),
                json.dumps([f.model_dump() for f in analysis.rule_findings]),
                json.dumps(analysis.patterns_identified),
                analysis.confidence_score,
                analysis.total_mistakes_found,
                analysis.mistake_score,
                analysis.created_at.isoformat(),
            ),
        )
        await self._db.commit()
        return analysis.id

    async def get_latest_analysis(self, trade_id: str, owner_id: str) -> Analysis | None:
        cursor = await self._db.execute(
            """SELECT * FROM trade_analyses WHERE trade_id = ? AND user_id = ?
               ORDER BY created_at DESC LIMIT 1""",
            (trade_id, owner_id),
        )
        row = await cursor.fetchone()
        if not row:
            return None
        return self._row_to_analysis(row)

    async def list_analyses(self, trade_id: str, owner_id: str) -> list[Analysis]:
        cursor = await self._db.execute(
            """SELECT * FROM trade_analyses WHERE trade_id = ? AND user_id = ?
               ORDER BY created_at DESC""",
            (trade_id, owner_id),
        )
        rows = await cursor.fetchall()
        return [self._row_to_analysis(r) for r in rows]

    async def list_analyzed_trade_ids(self, owner_id: str) -> set[str]:
        cursor = await self._db.execute(
            "SELECT DISTINCT trade_id FROM trade_analyses WHERE user_id = ?", (owner_id,)
        )
        rows = await cursor.fetchall()
        return {r["trade_id"] for r in rows}

    def _row_to_analysis(self, row) -> Analysis:
        return Analysis(
            id=row["id"],
            trade_id=row["trade_id"],
            user_id=row["user_id"],
            ai_analysis=ExternalAnalysis.model_validate_json(row["ai_analysis_json"]),
            mistakes_detected=json.loads(row["mistakes_detected_json"]),
            rule_findings=[
                MistakeFinding(**f) for f in json.loads(row["rule_findings_json"])
            ],
            patterns_identified=json.loads(row["patterns_identified_json"]),
            confidence_score=row["confidence_score"],
            total_mistakes_found=row["total_mistakes_found"],
            mistake_score=row["mistake_score"],
            created_at=row["created_at"],
        )
