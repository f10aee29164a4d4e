from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "test", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "America/New_York"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth
    # Placeholder keeps local/test runs working; real deployments override via env.
    JWT_SECRET: str = "test-jwt-secret"
    JWT_ALGORITHM: str = "HS256"

    # Workers
    REDIS_URL: str = "redis://localhost:6379/0"

    # Collaborating services (notifications are optional)
    COMMUNICATIONS_SERVICE_URL: Optional[str] = None

    # Money
    CURRENCY: str = "USD"

    # Platform fee policy
    PLATFORM_FEE_POLICY: Literal["percentage", "flat_plus_percentage", "tiered"] = (
        "percentage"
    )
    PLATFORM_FEE_RATE: Decimal = Decimal("0.03")
    PLATFORM_FEE_FLAT: Decimal = Decimal("0")
    # JSON list of [up_to, rate] pairs, e.g. [[100, "0.10"], [null, "0.05"]]
    PLATFORM_FEE_TIERS: list[tuple[Optional[Decimal], Decimal]] = []

    # Booking lifecycle
    SLOT_GRANULARITY_MINUTES: int = 15
    MAX_SESSION_MINUTES: int = 480
    LATE_CANCELLATION_CUTOFF_HOURS: int = 24
    DISPUTE_WINDOW_HOURS: int = 72

    # Payout holds
    ESTABLISHED_TRAINER_THRESHOLD: int = 3
    PAYOUT_HOLD_HOURS_NEW_TRAINER: int = 48
    PAYOUT_HOLD_HOURS_ESTABLISHED_TRAINER: int = 24

    # Store behaviour
    STORE_TIMEOUT_SECONDS: float = 5.0
    VERSION_CONFLICT_MAX_RETRIES: int = 3

    # Completion sweep
    COMPLETION_SWEEP_INTERVAL_MINUTES: int = 5
    COMPLETION_SWEEP_BATCH_SIZE: int = 200

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @field_validator("PLATFORM_FEE_RATE")
    @classmethod
    def check_fee_rate(cls, v: Decimal) -> Decimal:
        if v < 0 or v > 1:
            raise ValueError("PLATFORM_FEE_RATE must be between 0 and 1")
        return v

    @field_validator("SLOT_GRANULARITY_MINUTES")
    @classmethod
    def check_granularity(cls, v: int) -> int:
        if v <= 0 or 60 % v != 0:
            raise ValueError("SLOT_GRANULARITY_MINUTES must divide an hour evenly")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
