"""Storage services package."""

from swissbooks.services.storage.interface import (
    AuditStorageInterface,
    ReportStorageInterface,
    StorageError,
)
from swissbooks.services.storage.local import (
    InMemoryAuditStorage,
    JsonlAuditStorage,
    LocalReportStorage,
)

__all__ = [
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "JsonlAuditStorage",
    "LocalReportStorage",
    "ReportStorageInterface",
    "StorageError",
]
