from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_STATUS_CHANNEL: str = "wa.message_status"

    JWT_SECRET: str = ""
    JWT_VERIFY_MODE: Literal["hs256", "jwks"] = "hs256"
    JWT_ALGORITHM: str = "HS256"
    JWKS_URL: str | None = None
    INTERNAL_API_TOKEN: str = ""

    CORS_ORIGINS: list[str] = ["*"]

    DISPATCH_POLL_INTERVAL: float = 2.0
    DISPATCH_BATCH_SIZE: int = 20
    DISPATCH_CONCURRENCY: int = 5
    DISPATCH_BACKOFF_BASE_SECONDS: float = 60.0
    DISPATCH_BACKOFF_MAX_SECONDS: float = 3600.0
    DISPATCH_MAX_RETRIES: int = 5
    DISPATCH_REAPER_INTERVAL: float = 60.0
    DISPATCH_REAPER_TIMEOUT_SECONDS: float = 300.0

    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    GATEWAY_DEFAULT_COUNTRY_CODE: str = "55"

    MEDIA_STORAGE_URL: str = ""
    MEDIA_STORAGE_KEY: str = ""
    MEDIA_BUCKET: str = "wa-midia"
    MEDIA_URL_TTL_SECONDS: int = 3600

    CREDENTIALS_ENCRYPTION_KEY: str = ""

    @model_validator(mode="after")
    def _check_dispatch_controls(self) -> Settings:
        positive = {
            "DISPATCH_POLL_INTERVAL": self.DISPATCH_POLL_INTERVAL,
            "DISPATCH_BATCH_SIZE": self.DISPATCH_BATCH_SIZE,
            "DISPATCH_CONCURRENCY": self.DISPATCH_CONCURRENCY,
            "DISPATCH_BACKOFF_BASE_SECONDS": self.DISPATCH_BACKOFF_BASE_SECONDS,
            "DISPATCH_REAPER_INTERVAL": self.DISPATCH_REAPER_INTERVAL,
            "DISPATCH_REAPER_TIMEOUT_SECONDS": self.DISPATCH_REAPER_TIMEOUT_SECONDS,
            "GATEWAY_TIMEOUT_SECONDS": self.GATEWAY_TIMEOUT_SECONDS,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive")
        if self.DISPATCH_MAX_RETRIES < 0:
            raise ValueError("DISPATCH_MAX_RETRIES must be >= 0")
        if self.DISPATCH_BACKOFF_MAX_SECONDS < self.DISPATCH_BACKOFF_BASE_SECONDS:
            raise ValueError("DISPATCH_BACKOFF_MAX_SECONDS must be >= DISPATCH_BACKOFF_BASE_SECONDS")
        return self

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
