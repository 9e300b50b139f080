"""Centralized application settings powered by Pydantic.

Environment matrix:

| Section     | Environment Variable          | Default                                     | Purpose                                |
|-------------|-------------------------------|---------------------------------------------|----------------------------------------|
| Market data | `FINANCIAL_DATASETS_API_KEY`  | `None`                                      | Primary backend credential (header)    |
| Market data | `FMP_API_KEY`                 | `None`                                      | Secondary backend credential (query)   |
| Market data | `FINANCIAL_DATASETS_BASE_URL` | `https://api.financialdatasets.ai`          | Primary backend root                   |
| Market data | `FMP_BASE_URL`                | `https://financialmodelingprep.com/stable`  | Secondary backend root                 |
| Market data | `HTTP_TIMEOUT_SECS`           | `30`                                        | Per-request timeout for upstream calls |
| Cache       | `FINDATA_CACHE_DIR`           | `.findata/cache`                            | Directory for cached responses         |

Settings are read from the environment every time ``get_settings()`` is
called, so rotating a credential takes effect on the next request without a
restart.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class _SettingsBase(BaseSettings):
    """Common configuration for BaseSettings subclasses."""

    model_config = SettingsConfigDict(
        env_prefix="",
        populate_by_name=True,
        extra="ignore",
        case_sensitive=True,
        frozen=True,
    )


class MarketDataSettings(_SettingsBase):
    """API credentials and endpoints for the two upstream data vendors."""

    financial_datasets_key: str | None = Field(
        default=None, alias="FINANCIAL_DATASETS_API_KEY", repr=False
    )
    fmp_key: str | None = Field(default=None, alias="FMP_API_KEY", repr=False)
    financial_datasets_base_url: str = Field(
        default="https://api.financialdatasets.ai",
        alias="FINANCIAL_DATASETS_BASE_URL",
    )
    fmp_base_url: str = Field(
        default="https://financialmodelingprep.com/stable", alias="FMP_BASE_URL"
    )
    http_timeout_secs: float = Field(default=30.0, alias="HTTP_TIMEOUT_SECS")

    @field_validator("financial_datasets_base_url", "fmp_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("http_timeout_secs", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: float | str | None) -> float:
        if value in (None, ""):
            return 30.0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 30.0

    @computed_field
    @property
    def has_financial_datasets(self) -> bool:
        return bool(self.financial_datasets_key)

    @computed_field
    @property
    def has_fmp(self) -> bool:
        return bool(self.fmp_key)


class CacheSettings(_SettingsBase):
    """Location of the on-disk response cache."""

    directory: Path = Field(default=Path(".findata/cache"), alias="FINDATA_CACHE_DIR")


class Settings(BaseModel):
    """Aggregate accessor for domain-specific settings."""

    market_data: MarketDataSettings = Field(default_factory=MarketDataSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }


def get_settings() -> Settings:
    """Instantiate settings from the current environment."""
    return Settings()


def reload_settings() -> Settings:
    """Alias for get_settings to maintain a consistent API."""
    return get_settings()


def get_market_data_settings() -> MarketDataSettings:
    return get_settings().market_data


def get_cache_settings() -> CacheSettings:
    return get_settings().cache


__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
    "MarketDataSettings",
    "CacheSettings",
    "get_market_data_settings",
    "get_cache_settings",
]
