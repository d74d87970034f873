"""Environment-driven configuration.

Every setting the service reads lives on :class:`Settings`. Values come from
the process environment or a local ``.env`` file and are parsed once, when the
module is first imported.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Paint Shop Inventory"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DB_URL: str = Field(
        default="sqlite:///./paintshop.db",
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_MIN: int = 60 * 12
    JWT_REFRESH_TTL_DAYS: int = 7
    ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    # Stock adjustment retry: attempts and the per-attempt backoff step.
    STOCK_RETRY_ATTEMPTS: int = 5
    STOCK_RETRY_BACKOFF_MS: int = 100
    DEFAULT_MIN_STOCK_LEVEL: float = 5

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")

    @field_validator("STOCK_RETRY_ATTEMPTS")
    @classmethod
    def at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("STOCK_RETRY_ATTEMPTS must be at least 1")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
