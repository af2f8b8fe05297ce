"""Application configuration."""

from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models.config import AlertConfig, IndicatorConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Tick loop
    update_interval: float = 5.0  # seconds between ticks
    max_history_length: int = 200

    # Alerts
    alert_tolerance: Decimal = Decimal("0.01")  # within 1% of target

    # Indicator periods
    min_snapshot_history: int = 20
    sma_short_period: int = 20
    sma_long_period: int = 50
    ema_fast_period: int = 12
    ema_slow_period: int = 26
    rsi_period: int = 14
    bollinger_period: int = 20
    bollinger_k: float = 2.0

    # Reports
    report_days: int = 7

    # Watchlist
    watchlist_file: str = "watchlist.yaml"
    symbols: list[str] = ["AAPL", "GOOGL", "TSLA", "BTC"]

    # Synthetic price source (None = nondeterministic)
    price_seed: int | None = None

    # Logging
    log_level: str = "INFO"

    def indicator_config(self) -> IndicatorConfig:
        return IndicatorConfig(
            sma_short_period=self.sma_short_period,
            sma_long_period=self.sma_long_period,
            ema_fast_period=self.ema_fast_period,
            ema_slow_period=self.ema_slow_period,
            rsi_period=self.rsi_period,
            bollinger_period=self.bollinger_period,
            bollinger_k=self.bollinger_k,
            volume_period=self.sma_short_period,
            min_history=self.min_snapshot_history,
        )

    def alert_config(self) -> AlertConfig:
        return AlertConfig(tolerance=self.alert_tolerance)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
