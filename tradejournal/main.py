"""Entry point — starts the Trade Journal API."""

import sys
from pathlib import Path

import uvicorn
from loguru import logger

from tradejournal.config import Settings, settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(config: Settings) -> list[int]:
    """Console sink at the configured level, plus a rotating DEBUG file."""
    logger.remove()
    Path(config.log_path).parent.mkdir(parents=True, exist_ok=True)
    return [
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=config.log_level),
        logger.add(
            config.log_path,
            rotation=config.log_rotation,
            retention=config.log_retention,
            level="DEBUG",
        ),
    ]


def main(config: Settings | None = None):
    config = config or settings
    configure_logging(config)

    logger.info(f"Trade Journal starting on http://{config.api_host}:{config.api_port}")
    logger.info(f"Database: {config.db_path} | log file: {config.log_path}")
    if not config.anthropic_api_key:
        logger.warning("No Anthropic API key configured, analyses will be rule-based only")

    from tradejournal.api.main import create_app

    uvicorn.run(
        create_app(config),
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
