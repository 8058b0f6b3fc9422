from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables with validation."""

    model_config = SettingsConfigDict(
        env_file=(str(Path(__file__).resolve().parents[1] / ".env"), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    app_name: str = Field(default="Travel Pay API", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="production",
        alias="APP_ENV",
    )
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        alias="CORS_ORIGINS",
    )

    travel_api_base_url: str = Field(
        default="https://localhost:7225/api",
        alias="TRAVEL_API_BASE_URL",
    )
    travel_api_token: SecretStr | None = Field(default=None, alias="TRAVEL_API_TOKEN")
    travel_api_timeout: float = Field(default=30.0, gt=0, le=300, alias="TRAVEL_API_TIMEOUT")
    travel_api_verify_ssl: bool = Field(default=True, alias="TRAVEL_API_VERIFY_SSL")

    payment_check_interval: float = Field(default=3.0, gt=0, alias="PAYMENT_CHECK_INTERVAL")
    payment_check_timeout: float = Field(default=300.0, gt=0, alias="PAYMENT_CHECK_TIMEOUT")
    payment_success_close_delay: float = Field(default=3.0, ge=0, alias="PAYMENT_SUCCESS_CLOSE_DELAY")
    payment_session_idle_ttl: float = Field(default=600.0, gt=0, alias="PAYMENT_SESSION_IDLE_TTL")

    qr_code_size: int = Field(default=250, ge=21, le=2000, alias="QR_CODE_SIZE")
    qr_code_margin: int = Field(default=1, ge=0, le=10, alias="QR_CODE_MARGIN")

    @field_validator("api_v1_prefix")
    @classmethod
    def validate_api_prefix(cls, value: str) -> str:
        """Ensure the API prefix starts with a slash and has no trailing slash."""
        normalized = value.strip()
        if not normalized.startswith("/"):
            raise ValueError("API_V1_PREFIX must start with '/'.")
        if len(normalized) > 1 and normalized.endswith("/"):
            normalized = normalized.rstrip("/")
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: str | list[str]) -> list[str]:
        """Support comma-separated CORS origins from environment variables."""
        if isinstance(value, str):
            if not value.strip():
                return []
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("travel_api_base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        normalized = value.strip()
        lowered = normalized.lower()
        if not (lowered.startswith("http://") or lowered.startswith("https://")):
            raise ValueError("TRAVEL_API_BASE_URL must start with http:// or https://")
        return normalized.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {value}")
        return normalized

    @model_validator(mode="after")
    def validate_payment_window(self) -> "Settings":
        if self.payment_check_timeout < self.payment_check_interval:
            raise ValueError("PAYMENT_CHECK_TIMEOUT must be >= PAYMENT_CHECK_INTERVAL")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings: Settings = get_settings()
