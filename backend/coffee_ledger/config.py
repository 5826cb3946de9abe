"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Coffee_Ledger"
    ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Celery (SMS retry sweep)
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"

    # Lot identifiers: <prefix>-<season>-<suffix>
    LOT_ID_PREFIX: str = "KC"
    LOT_ID_SUFFIX_LENGTH: int = 10
    LOT_ID_MAX_ATTEMPTS: int = 5

    # SMS gateway: "twilio", "http" or "none"
    SMS_PROVIDER: str = "none"
    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_PHONE_NUMBER: str | None = None
    SMS_HTTP_URL: str | None = None
    SMS_HTTP_TOKEN: str | None = None
    SMS_SENDER_NAME: str | None = None
    SMS_HTTP_TIMEOUT_SECONDS: int = 10

    # Retry sweep for pending notifications
    SMS_MAX_ATTEMPTS: int = 3
    SMS_SWEEP_INTERVAL_SECONDS: float = 60.0
    SMS_SWEEP_BATCH_SIZE: int = 100
    # Inline send/resend holds a pending row this long before the sweep may retry it.
    SMS_INLINE_CLAIM_SECONDS: int = 120

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
