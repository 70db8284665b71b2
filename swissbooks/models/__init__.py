"""
Data Models Package

This package contains all Pydantic models used in Swissbooks.
Invoice files, processed invoices, reports and audit events all
conform to these schemas.
"""

from swissbooks.models.invoice import (
    Creditor,
    Debtor,
    InvoiceLanguage,
    InvoiceRecord,
    LineItem,
    ProcessedInvoice,
)
from swissbooks.models.report import (
    ClientSummary,
    ConversionWarning,
    InvoiceSummary,
    MonthSummary,
    QuarterSummary,
    Report,
)
from swissbooks.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Invoice models
    "Creditor",
    "Debtor",
    "InvoiceLanguage",
    "InvoiceRecord",
    "LineItem",
    "ProcessedInvoice",
    # Report models
    "ClientSummary",
    "ConversionWarning",
    "InvoiceSummary",
    "MonthSummary",
    "QuarterSummary",
    "Report",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
