"""Environment configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from smart_alerts.domain.rules import (
    DEFAULT_RISK_FREE_RATE,
    DEFAULT_STORAGE_KEY,
    PRICE_HISTORY_SIZE,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Persistence
    storage_backend: str = Field(
        default="file",
        alias="STORAGE_BACKEND",
        description="'file' for a local JSON document, 'postgres' for the database",
    )
    state_path: str = Field(default="data/smart_alerts.json", alias="ALERT_STATE_PATH")
    storage_key: str = Field(default=DEFAULT_STORAGE_KEY, alias="ALERT_STORAGE_KEY")

    # Database
    database_url: PostgresDsn | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="PostgreSQL connection string (postgres backend only)",
    )
    database_pool_size: int = Field(default=5, alias="DATABASE_POOL_SIZE")

    # Notifications
    discord_webhook_url: str = Field(default="", alias="DISCORD_WEBHOOK_URL")

    # Market data
    watchlist: str = Field(default="AAPL,MSFT,GOOGL", alias="WATCHLIST")
    tick_interval_seconds: float = Field(default=2.0, alias="TICK_INTERVAL_SECONDS")
    price_history_size: int = Field(default=PRICE_HISTORY_SIZE, alias="PRICE_HISTORY_SIZE")

    # Analytics
    risk_free_rate: float = Field(default=DEFAULT_RISK_FREE_RATE, alias="RISK_FREE_RATE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def watchlist_symbols(self) -> list[str]:
        """Watchlist as a list of upper-case symbols."""
        return [s.strip().upper() for s in self.watchlist.split(",") if s.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
