from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional
from functools import lru_cache
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # Database Connection Pool Settings
    DB_POOL_SIZE: int = 10  # Base number of connections in pool
    DB_MAX_OVERFLOW: int = 20  # Extra connections allowed beyond pool_size
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for connection from pool
    DB_POOL_RECYCLE: int = 1800  # Recycle connections after 30 minutes

    # JWT Settings (tokens are issued elsewhere, only verified here)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ANONYMOUS_ACTOR: str = "anonymous"

    # App Settings
    APP_NAME: str = "Warehouse Operations API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Inventory policy
    CYCLE_COUNT_REQUIRE_FULL_COUNT: bool = True  # Reject completion while itemsCounted < itemsTotal
    LOW_STOCK_HIGH_PRIORITY_RATIO: float = 0.5  # low-stock is "high" at or below minStock * ratio
    EXPIRY_WARNING_DAYS: int = 30
    EXPIRY_CRITICAL_DAYS: int = 7

    # Receiving
    PUTAWAY_ITEMS_PER_PALLET: int = 4

    # Quality
    QC_PASS_SCORE: int = 80
    TEMP_NORMAL_MIN: float = 15.0
    TEMP_NORMAL_MAX: float = 25.0
    TEMP_WARNING_MIN: float = 10.0
    TEMP_WARNING_MAX: float = 30.0
    HUMIDITY_WARNING_MAX: float = 60.0
    HUMIDITY_CRITICAL_MAX: float = 75.0
    COMPLIANCE_DOC_EXPIRING_DAYS: int = 30

    # Workforce
    PERFORMANCE_WINDOW_DAYS: int = 7  # Trailing days, inclusive of today
    WEEKLY_PICK_TARGET_UNITS: int = 1500

    # Picking
    ORDER_FLOW_LIMIT: int = 20  # Active orders shown in the overview flow
    ROUTE_OPTIMIZER_URL: Optional[str] = None  # External optimizer, identity when unset
    ROUTE_OPTIMIZER_TIMEOUT: float = 10.0

    # Dashboard client
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    API_TIMEOUT: float = 30.0
    POLL_INTERVAL_OVERVIEW: int = 10
    POLL_INTERVAL_OUTBOUND: int = 10
    POLL_INTERVAL_QC: int = 10
    POLL_INTERVAL_INBOUND: int = 15
    POLL_INTERVAL_INVENTORY: int = 20
    POLL_INTERVAL_ANALYTICS: int = 30

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
