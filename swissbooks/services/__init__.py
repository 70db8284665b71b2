"""Services package."""

from swissbooks.services.exchange_rates import (
    ExchangeRateError,
    ExchangeRateProvider,
    OpenERApiProvider,
    StaticExchangeRateProvider,
)
from swissbooks.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    JsonlAuditStorage,
    LocalReportStorage,
    ReportStorageInterface,
    StorageError,
)

__all__ = [
    # Exchange rates
    "ExchangeRateError",
    "ExchangeRateProvider",
    "OpenERApiProvider",
    "StaticExchangeRateProvider",
    # Storage
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "JsonlAuditStorage",
    "LocalReportStorage",
    "ReportStorageInterface",
    "StorageError",
]
