"""Application configuration via pydantic-settings."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AdSpace Booking Engine"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "adspace"
    postgres_password: str = Field(default="adspace_secret")
    postgres_db: str = "adspace"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    database_url_override: Optional[str] = None  # e.g. sqlite+aiosqlite:// for tests

    @computed_field
    @property
    def database_url(self) -> str:
        """Async database connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (Celery broker/backend)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @computed_field
    @property
    def redis_url(self) -> str:
        """Redis connection URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # Security
    cors_origins: List[str] = ["http://localhost:3000"]
    rate_limit_per_minute: int = 100

    # Platform-level pricing (percentages, never user input)
    platform_commission_percent: Decimal = Decimal("10")
    platform_tax_percent: Decimal = Decimal("18")  # GST
    currency: str = "INR"

    # Day-type pricing: Monday=0 ... Sunday=6
    weekend_days: List[int] = [5, 6]
    holidays: List[date] = []

    # Refund policy: (days_before_start lower bound, refund percent)
    default_refund_policy: List[tuple[int, Decimal]] = [
        (7, Decimal("100")),
        (3, Decimal("70")),
        (1, Decimal("50")),
        (0, Decimal("0")),
    ]

    # Reconciliation
    reconciliation_currency_unit: Decimal = Decimal("0.01")

    # Scheduler
    lifecycle_sweep_minutes: int = 15
    reconciliation_hour: int = 2
    timezone: str = "Asia/Kolkata"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
