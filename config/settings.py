"""
Configuration settings for the Phase Workflow Engine.
All sensitive values are loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Phase Workflow Engine"
    debug: bool = Field(default=False, env="DEBUG")
    environment: str = Field(default="production", env="ENVIRONMENT")

    # Server
    host: str = Field(default="0.0.0.0", env="HOST")
    port: int = Field(default=8000, env="PORT")

    # Database (PostgreSQL in production, sqlite+aiosqlite in tests)
    database_url: str = Field(default="", env="DATABASE_URL")
    database_echo: bool = Field(default=False, env="DATABASE_ECHO")
    db_pool_size: int = Field(default=10, env="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, env="DB_MAX_OVERFLOW")
    db_pool_timeout: int = Field(default=30, env="DB_POOL_TIMEOUT")
    db_pool_recycle: int = Field(default=1800, env="DB_POOL_RECYCLE")

    # Calendar
    timezone: str = Field(default="Europe/Madrid", env="TIMEZONE")
    week_start_day: int = Field(default=0, env="WEEK_START_DAY")  # 0 = Monday

    # Phase scheduling
    phase_weeks: int = Field(default=4, env="PHASE_WEEKS")
    tasks_per_week: int = Field(default=8, env="TASKS_PER_WEEK")

    # Swap quotas per phase
    swap_mode: str = Field(default="moderate", env="SWAP_MODE")
    swap_limit_conservative: int = Field(default=5, env="SWAP_LIMIT_CONSERVATIVE")
    swap_limit_moderate: int = Field(default=7, env="SWAP_LIMIT_MODERATE")
    swap_limit_aggressive: int = Field(default=10, env="SWAP_LIMIT_AGGRESSIVE")

    # Notification adapters (empty = disabled)
    slack_webhook_url: str = Field(default="", env="SLACK_WEBHOOK_URL")
    discord_webhook_url: str = Field(default="", env="DISCORD_WEBHOOK_URL")
    adapter_timeout_seconds: int = Field(default=10, env="ADAPTER_TIMEOUT_SECONDS")

    # Outbox delivery
    outbox_dispatch_interval_seconds: int = Field(default=30, env="OUTBOX_DISPATCH_INTERVAL_SECONDS")
    outbox_max_attempts: int = Field(default=5, env="OUTBOX_MAX_ATTEMPTS")
    outbox_batch_size: int = Field(default=50, env="OUTBOX_BATCH_SIZE")
    outbox_retry_base_seconds: int = Field(default=60, env="OUTBOX_RETRY_BASE_SECONDS")

    # Scheduler Settings
    enable_scheduler: bool = Field(default=True, env="ENABLE_SCHEDULER")
    reconcile_day: str = Field(default="mon", env="RECONCILE_DAY")
    reconcile_hour: int = Field(default=0, env="RECONCILE_HOUR")
    reconcile_minute: int = Field(default=5, env="RECONCILE_MINUTE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def swap_limit_for(self, mode: str) -> int:
        """Total swaps per phase for a swap mode."""
        limits = {
            "conservative": self.swap_limit_conservative,
            "moderate": self.swap_limit_moderate,
            "aggressive": self.swap_limit_aggressive,
        }
        if mode not in limits:
            raise ValueError(f"Unknown swap mode: {mode}")
        return limits[mode]


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the application settings."""
    return settings
