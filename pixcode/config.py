"""Application configuration utilities."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PIX_KEY = "contato@dinamica.com"


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(default=True, description="Enable JSON formatted logs")


class MerchantIdentity(BaseModel):
    """PIX identity of the merchant receiving a payment."""

    model_config = {"frozen": True}

    pix_key: str = Field(min_length=1, max_length=77)
    merchant_name: str = Field(min_length=1, max_length=25)
    merchant_city: str = Field(min_length=1, max_length=15)


class Settings(BaseSettings):
    """Central application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="pixcode")
    environment: Literal["development", "staging", "production"] = Field(default="development")

    pix_key: str = Field(default=DEFAULT_PIX_KEY, validation_alias=AliasChoices("PIX_KEY", "pix_key"))
    merchant_name: str = Field(default="Dinamica SaaS", validation_alias=AliasChoices("PIX_MERCHANT_NAME", "merchant_name"))
    merchant_city: str = Field(default="Sao Paulo", validation_alias=AliasChoices("PIX_MERCHANT_CITY", "merchant_city"))

    payment_ttl_minutes: int = Field(default=30, ge=1, le=1440)
    render_timeout_seconds: float = Field(default=10.0, gt=0)
    qr_width: int = Field(default=256, ge=64, le=2048)
    qr_margin: int = Field(default=1, ge=0, le=16)

    status_provider: Literal["simulated", "static", "http"] = Field(default="simulated")
    status_check_delay_seconds: float = Field(default=1.0, ge=0)
    status_api_url: str | None = Field(default=None)
    status_api_token: str | None = Field(default=None)
    status_api_timeout_seconds: float = Field(default=20.0, gt=0)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def merchant_identity(self) -> MerchantIdentity:
        return MerchantIdentity(
            pix_key=self.pix_key,
            merchant_name=self.merchant_name,
            merchant_city=self.merchant_city,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return memoized application settings."""

    return Settings()


settings = get_settings()
