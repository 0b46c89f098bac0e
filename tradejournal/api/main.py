"""FastAPI application factory and lifespan management."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from tradejournal.ai_service import AIService
from tradejournal.analysis_service import TradeAnalyzer
from tradejournal.config import Settings, settings
from tradejournal.db.database import Database

# Global app state — accessible from route handlers
app_state: dict = {}


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        logger.info("Starting Trade Journal...")

        db = Database(config=config)
        await db.connect()

        ai_service = AIService(config)
        analyzer = TradeAnalyzer(db, ai_service, config)

        app_state.update({
            "config": config,
            "db": db,
            "ai_service": ai_service,
            "analyzer": analyzer,
        })
        logger.info("Trade Journal ready")

        yield

        logger.info("Shutting down Trade Journal...")
        await db.disconnect()
        app_state.clear()

    app = FastAPI(
        title="Trade Journal",
        description="Trade journaling backend with rule-based and AI trade analysis",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health():
        ai_service = app_state.get("ai_service")
        return {
            "status": "ok",
            "ai_available": bool(ai_service and ai_service.available),
        }

    # Include routers
    from tradejournal.api.trades import router as trades_router
    from tradejournal.api.analysis import router as analysis_router

    app.include_router(trades_router)
    app.include_router(analysis_router)

    return app
