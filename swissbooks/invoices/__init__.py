"""Invoice file loading package."""

from swissbooks.invoices.loader import (
    InvoiceLoadError,
    list_invoice_files,
    load_invoice_file,
    load_invoices,
)

__all__ = [
    "InvoiceLoadError",
    "list_invoice_files",
    "load_invoice_file",
    "load_invoices",
]
