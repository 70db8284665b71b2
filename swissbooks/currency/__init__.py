"""Currency conversion package."""

from swissbooks.currency.converter import (
    BASE_CURRENCY,
    CurrencyError,
    ExchangeRateTable,
    MissingRateError,
    RateSource,
    convert,
)

__all__ = [
    "BASE_CURRENCY",
    "CurrencyError",
    "ExchangeRateTable",
    "MissingRateError",
    "RateSource",
    "convert",
]
