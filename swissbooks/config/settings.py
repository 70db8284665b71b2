"""
Configuration Management for Swissbooks

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Environment-driven settings live here, but the core
(numbering, aggregation, rendering) never reads them directly. It receives
an explicit AggregationConfig so several years can be processed side by
side with independent defaults.
"""

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_REPORT_LANGUAGES = ("de", "en")


class ExchangeRateSettings(BaseSettings):
    """Exchange rate service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_RATE_",
        extra="ignore"
    )

    api_url: str = Field(
        default="https://open.er-api.com/v6/latest/CHF",
        description="Endpoint returning rates with CHF as base currency"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="HTTP timeout for the rate fetch"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before a transport failure becomes fatal"
    )
    retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Exponential backoff multiplier between attempts"
    )


class ReportSettings(BaseSettings):
    """Yearly report generation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="REPORT_",
        extra="ignore"
    )

    invoices_dir: Path = Field(
        default=Path("accounting/invoices"),
        description="Directory holding YYYY-MM-<client>.json invoice files"
    )
    reports_dir: Path = Field(
        default=Path("accounting/reports"),
        description="Directory the Markdown reports are written to"
    )
    languages: str = Field(
        default="de,en",
        description="Comma-separated list of report languages"
    )
    reporting_currency: str = Field(
        default="CHF",
        min_length=3,
        max_length=3,
        description="Currency all totals are converted into"
    )
    default_currency: str = Field(
        default="CHF",
        min_length=3,
        max_length=3,
        description="Currency assumed when an invoice omits one"
    )

    @field_validator("reporting_currency", "default_currency")
    @classmethod
    def uppercase_currency(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("languages")
    @classmethod
    def validate_languages(cls, v: str) -> str:
        """Only languages we have report texts for."""
        requested = [lang.strip().lower() for lang in v.split(",") if lang.strip()]
        if not requested:
            raise ValueError("At least one report language is required")
        unknown = [lang for lang in requested if lang not in SUPPORTED_REPORT_LANGUAGES]
        if unknown:
            raise ValueError(
                f"Unsupported report language(s): {unknown}. "
                f"Supported: {list(SUPPORTED_REPORT_LANGUAGES)}"
            )
        return ",".join(requested)

    @property
    def languages_list(self) -> list[str]:
        """Get report languages as a list."""
        return self.languages.split(",")

    def to_aggregation_config(self, today: Optional[date] = None) -> "AggregationConfig":
        """Build the explicit configuration handed to the core."""
        return AggregationConfig(
            reporting_currency=self.reporting_currency,
            default_currency=self.default_currency,
            today=today,
        )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured log output"
    )


class AggregationConfig(BaseModel):
    """
    Explicit configuration for one aggregation run.

    `today` pins the calendar used for fallback invoice numbering and
    future-quarter suppression. Left as None, the real current date is used.
    """
    model_config = ConfigDict(frozen=True)

    reporting_currency: str = Field(
        default="CHF",
        min_length=3,
        max_length=3,
    )
    default_currency: str = Field(
        default="CHF",
        min_length=3,
        max_length=3,
    )
    today: Optional[date] = None

    @field_validator("reporting_currency", "default_currency")
    @classmethod
    def uppercase_currency(cls, v: str) -> str:
        return v.strip().upper()

    def current_date(self) -> date:
        """The pinned date, or the real one."""
        return self.today or date.today()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def exchange_rates(self) -> ExchangeRateSettings:
        return ExchangeRateSettings()

    @property
    def report(self) -> ReportSettings:
        return ReportSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    `<name>_error` entry for each failure. Used by the settings page.
    """
    results = {}

    settings = get_settings()

    for name in ("exchange_rates", "report", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
