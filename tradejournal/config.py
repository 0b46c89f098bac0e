from pydantic_settings import BaseSettings
from pydantic import BaseModel, Field


class RuleThresholds(BaseModel):
    """Tunable limits used by the mistake rules."""

    # Risk management
    max_stop_distance_pct: float = 5.0
    min_risk_reward: float = 1.5
    account_equity: float = 100_000.0
    max_position_pct: float = 10.0

    # Timing
    late_entry_hour: int = 15  # local exchange time
    quick_exit_minutes: float = 5.0

    # Psychology
    revenge_window_minutes: float = 30.0
    max_trades_per_day: int = 5
    negative_emotions: list[str] = Field(
        default_factory=lambda: ["fear", "fomo", "revenge", "frustrated", "angry", "stressed"]
    )
    emotion_min_samples: int = 3
    emotion_loss_rate: float = 0.6

    # Strategy
    placeholder_reasons: list[str] = Field(default_factory=lambda: ["Imported from Excel"])


class Settings(BaseSettings):
    # Claude API
    anthropic_api_key: str = ""
    ai_model: str = "claude-sonnet-4-20250514"
    ai_max_tokens: int = 2048
    ai_timeout_seconds: float = 30.0

    # Web server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["*"]

    # Auth
    jwt_secret: str = "change-this-to-a-random-secret"
    jwt_expiry_hours: int = 168  # 7 days

    # Database
    db_path: str = "data/trade_journal.db"
    db_cache_mb: int = 64

    # Logging
    log_path: str = "data/trade_journal.log"
    log_level: str = "INFO"
    log_rotation: str = "10 MB"
    log_retention: str = "7 days"

    # Analysis
    history_window: int = 50
    bulk_analysis_limit: int = 100
    rules: RuleThresholds = RuleThresholds()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
    }


settings = Settings()
