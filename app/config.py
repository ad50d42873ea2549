from pydantic_settings import BaseSettings
from pydantic import field_validator
from decimal import Decimal
from functools import lru_cache
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./wholesale.db"

    # Database Connection Pool Settings (ignored for SQLite)
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # App Settings
    APP_NAME: str = "Wholesale Marketplace Backend"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Display currency used in validation messages
    CURRENCY_SYMBOL: str = "৳"

    # Wholesale pricing policy
    TIER_DISCOUNT_TOLERANCE: Decimal = Decimal("0.01")  # Allowed drift between tier price and discount %
    LOW_STOCK_WARNING_RATIO: Decimal = Decimal("0.8")  # Warn when an order takes more than 80% of stock

    # Payout policy
    PAYOUT_OVERDUE_DAYS: int = 30  # Outstanding payouts older than this are overdue
    PAYOUT_HIGH_URGENCY_DAYS: int = 60  # ... and high urgency after this
    PAYOUT_TAX_RATE: Decimal = Decimal("0")  # e.g. 0.15 for 15% VAT on period revenue

    # Stock alerts (products without their own reorder settings)
    REORDER_LEVEL_DEFAULT: int = 20
    REORDER_QUANTITY_DEFAULT: int = 50
    SALES_VELOCITY_DAYS: int = 30  # Window for average daily sales

    # Ledger reconciliation
    LEDGER_RECONCILE_TOLERANCE: Decimal = Decimal("0.01")

    # Background jobs
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_TIMEZONE: str = "Asia/Dhaka"
    PROFIT_REPORT_JOB_INTERVAL_MINUTES: int = 60
    PROFIT_REPORT_JOB_BATCH_SIZE: int = 500

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        return self.CORS_ORIGINS

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
