"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from edgecore.models import ReadinessThresholds, SignalThresholds


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Deriv feed
    deriv_ws_url: str = "wss://ws.binaryws.com/websockets/v3?app_id=1089"
    markets: list[str] = ["R_10", "R_25", "R_50", "R_75", "R_100"]
    reconnect_delay: float = 3.0  # seconds, fixed (no backoff)
    feed_enabled: bool = True
    quote_decimals: int = 2  # used when the feed sends a numeric quote

    # History
    history_capacity: int = Field(default=5000, gt=0)

    # Subscribers
    subscriber_queue_size: int = Field(default=256, gt=0)
    subscriber_send_timeout: float = 5.0
    ws_idle_timeout: float = 60.0

    # Signal / readiness thresholds (override with e.g. SIGNALS__RSI_FLAT_LOW=44)
    signals: SignalThresholds = SignalThresholds()
    readiness: ReadinessThresholds = ReadinessThresholds()
    bot_market: str = "R_75"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
