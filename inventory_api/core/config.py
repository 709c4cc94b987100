# inventory_api/core/config.py

from functools import lru_cache
from urllib.parse import urlsplit

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Inventory Stock Management"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # History service (audit trail)
    HISTORY_SERVICE_URL: str = "http://localhost:4000/api/history"
    HISTORY_TIMEOUT_SECONDS: float = 5.0
    AUDIT_WORKERS: int = 4

    # PLU generation
    PLU_MAX_ATTEMPTS: int = 10

    # CORS (defaults to the history service origin)
    CORS_ORIGINS: list[str] = []

    # Rate limiting
    RATE_LIMIT: str = "100/minute"
    RATE_LIMIT_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def default_cors_origins(self):
        if not self.CORS_ORIGINS and self.HISTORY_SERVICE_URL:
            parts = urlsplit(self.HISTORY_SERVICE_URL)
            if parts.scheme and parts.netloc:
                self.CORS_ORIGINS = [f"{parts.scheme}://{parts.netloc}"]
        return self

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
