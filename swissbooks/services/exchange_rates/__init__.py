"""Exchange rate services package."""

from swissbooks.services.exchange_rates.provider import (
    ExchangeRateError,
    ExchangeRateProvider,
    OpenERApiProvider,
    StaticExchangeRateProvider,
)

__all__ = [
    "ExchangeRateError",
    "ExchangeRateProvider",
    "OpenERApiProvider",
    "StaticExchangeRateProvider",
]
