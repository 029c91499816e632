from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    SHOP_NAME: str = "Pasarantar"
    TIMEZONE: str = "Asia/Jakarta"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./pasarantar.db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth (tokens are issued by the storefront login flow)
    JWT_SECRET: str = "shop-customer-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"

    # Background worker
    REDIS_URL: str = "redis://localhost:6379/0"

    # External HTTP services
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODER_USER_AGENT: str = "Pasarantar-UMKM/1.0"
    GEOCODER_COUNTRY_CODES: str = "id"
    ROUTING_URL: str = "https://router.project-osrm.org/route/v1/driving"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Requests slower than this are logged as warnings
    SLOW_REQUEST_MS: float = 1500.0

    # Order limits
    ORDER_MAX_ITEMS: int = 50
    ORDER_MAX_QTY_PER_ITEM: int = 100
    ORDER_MAX_TOTAL: int = 50_000_000

    # Loyalty
    VOUCHER_VALIDITY_DAYS: int = 30

    # Notifications
    NOTIFICATION_MAX_ATTEMPTS: int = 5
    NOTIFICATION_RETRY_DELAY_SECONDS: int = 60

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

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
