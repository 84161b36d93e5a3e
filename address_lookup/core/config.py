from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    debug: bool = Field(False, alias="ALF_DEBUG")
    base_path: str = Field("/lookup-address", alias="ALF_BASE_PATH")

    keystore_backend: Literal["memory", "http"] = Field(
        "memory", alias="ALF_KEYSTORE_BACKEND"
    )
    keystore_url: str = Field(
        "http://localhost:8400/keystore/address-lookup-frontend",
        alias="ALF_KEYSTORE_URL",
    )
    keystore_ttl_seconds: int = Field(3600, alias="ALF_KEYSTORE_TTL_SECONDS", gt=0)
    keystore_max_entries: int = Field(10_000, alias="ALF_KEYSTORE_MAX_ENTRIES", gt=0)
    keystore_timeout: float = Field(5.0, alias="ALF_KEYSTORE_TIMEOUT")

    provider_url: str = Field("http://localhost:9022", alias="ALF_PROVIDER_URL")
    provider_timeout: float = Field(10.0, alias="ALF_PROVIDER_TIMEOUT")
    user_agent: str = Field("address-lookup-frontend", alias="ALF_USER_AGENT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("base_path", mode="before")
    def _normalize_base_path(cls, value: str) -> str:
        if isinstance(value, str):
            return "/" + value.strip().strip("/")
        return value

    @field_validator("keystore_backend", mode="before")
    def _normalize_backend(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("keystore_url", "provider_url", mode="before")
    def _strip_trailing_slash(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]
