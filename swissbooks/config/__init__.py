"""Configuration package."""

from swissbooks.config.settings import (
    AggregationConfig,
    AppSettings,
    ExchangeRateSettings,
    ReportSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AggregationConfig",
    "AppSettings",
    "ExchangeRateSettings",
    "ReportSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
