from __future__ import annotations

from functools import lru_cache

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SETTINGS__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    provider_version: str = Field(default="v0.1")

    store_connect_uri: str = Field(default="mongodb://localhost:27017")
    store_database: str = Field(default="CloudTracker")
    store_timeout: float = Field(default=30.0, gt=0)
    store_max_pool_size: int = Field(default=100, ge=0)
    store_unique_index: bool = Field(default=False)
    store_registry_size: int = Field(default=16, ge=1)

    strict_job_transitions: bool = Field(default=False)

    @validator("log_level")
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
